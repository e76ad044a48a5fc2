from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import click
from tabulate import tabulate

from ruleset_reconcile.policy_sync.models import Outcome, OutcomeKind
from ruleset_reconcile.utils import metrics


@dataclass
class RunSummary:
    """Outcomes of a run, in the order the targets were produced."""

    outcomes: list[Outcome] = field(default_factory=list)
    cancelled: bool = False

    def add(self, outcome: Outcome) -> None:
        self.outcomes.append(outcome)

    def count(self, kind: OutcomeKind) -> int:
        return sum(1 for o in self.outcomes if o.kind == kind)

    @property
    def applied(self) -> int:
        return self.count(OutcomeKind.APPLIED)

    @property
    def skipped(self) -> int:
        return self.count(OutcomeKind.SKIPPED)

    @property
    def failed(self) -> int:
        return self.count(OutcomeKind.FAILED)

    @property
    def ok(self) -> bool:
        return self.failed == 0


def format_outcome(outcome: Outcome) -> str:
    ids = ", ".join(str(i) for i in outcome.policy_ids)
    match outcome.kind:
        case OutcomeKind.APPLIED:
            if outcome.detail:
                msg = f"ruleset would be created ({outcome.detail})"
            else:
                msg = f"ruleset {ids} created"
        case OutcomeKind.SKIPPED:
            msg = f"{outcome.reason} ({ids})" if ids else str(outcome.reason)
        case OutcomeKind.FAILED:
            msg = f"{outcome.reason}: {outcome.detail}"
    return f"[{outcome.kind.name}] {outcome.target}: {msg}"


class Reporter:
    """Streams per-target status lines and renders the final summary."""

    def __init__(self, echo: Callable[[str], None] = click.echo):
        self.echo = echo

    def report(
        self, outcomes: Iterable[Outcome], summary: RunSummary | None = None
    ) -> RunSummary:
        summary = summary if summary is not None else RunSummary()
        for outcome in outcomes:
            summary.add(outcome)
            metrics.inc_outcome(outcome.kind.value)
            self.echo(format_outcome(outcome))
        self.render(summary)
        return summary

    def render(self, summary: RunSummary) -> None:
        rows = [
            ["applied", summary.applied],
            ["skipped", summary.skipped],
            ["failed", summary.failed],
            ["total", len(summary.outcomes)],
        ]
        self.echo(tabulate(rows, headers=["OUTCOME", "COUNT"]))
        if summary.cancelled:
            self.echo("run cancelled, remaining targets were not attempted")

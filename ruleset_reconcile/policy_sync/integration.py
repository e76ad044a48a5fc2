import logging
import signal
import threading
import time
from collections.abc import (
    Generator,
    Iterable,
    Iterator,
    Sequence,
)
from contextlib import contextmanager
from typing import Any, TextIO

from github import Auth, Github

from ruleset_reconcile.policy_sync.models import (
    UNEXPECTED_ERROR,
    ConflictPolicy,
    Outcome,
)
from ruleset_reconcile.policy_sync.reconciler import PolicyReconciler, PolicyStore
from ruleset_reconcile.policy_sync.reporter import Reporter, RunSummary
from ruleset_reconcile.policy_sync.targets import TargetSource, TargetSourceMode
from ruleset_reconcile.utils import (
    config,
    metrics,
    threaded,
)
from ruleset_reconcile.utils.github_repos import discover_repositories
from ruleset_reconcile.utils.github_rulesets import (
    MAIN_BRANCH_RULESET,
    GithubRulesetsClient,
    PolicySpec,
)

INTEGRATION = "policy-sync"


def reconcile_targets(
    reconciler: PolicyReconciler,
    targets: Iterable[str],
    spec: PolicySpec,
    mode: ConflictPolicy,
    thread_pool_size: int = 1,
    cancel: threading.Event | None = None,
) -> Iterator[Outcome]:
    """Outcomes of every target, in target order, as they become available."""

    def _reconcile(target: str) -> Outcome:
        try:
            return reconciler.reconcile(target, spec, mode)
        except Exception as e:
            logging.exception(f"unexpected error while reconciling {target}")
            return Outcome.failed(target, UNEXPECTED_ERROR, str(e))

    return threaded.run_ordered(_reconcile, targets, thread_pool_size, cancel)


@contextmanager
def cancel_on_sigint(cancel: threading.Event) -> Generator[None, None, None]:
    """Turn the first SIGINT into a cancellation request between targets."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum: int, frame: Any) -> None:
        if cancel.is_set():
            raise KeyboardInterrupt
        logging.warning("interrupted, finishing in-flight targets before stopping")
        cancel.set()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def build_target_source(
    targets: Sequence[str],
    discover_all: bool,
    owner: str | None,
    token: str | None,
    api_url: str,
    include_forks: bool,
    include_archived: bool,
    stdin: TextIO | None,
    prompt: Any = None,
) -> TargetSource:
    if discover_all:
        gh = Github(auth=Auth.Token(token) if token else None, base_url=api_url)
        return TargetSource(
            mode=TargetSourceMode.ALL,
            owner=owner,
            discover=lambda o: discover_repositories(
                gh, o, include_forks=include_forks, include_archived=include_archived
            ),
        )
    if targets:
        return TargetSource(
            mode=TargetSourceMode.EXPLICIT, targets=list(targets), owner=owner
        )
    return TargetSource(
        mode=TargetSourceMode.INTERACTIVE, owner=owner, stream=stdin, prompt=prompt
    )


def sync(
    target_source: TargetSource,
    store: PolicyStore,
    dry_run: bool,
    conflict_policy: ConflictPolicy = ConflictPolicy.SKIP_IF_EXISTS,
    spec: PolicySpec = MAIN_BRANCH_RULESET,
    thread_pool_size: int = 1,
    reporter: Reporter | None = None,
    cancel: threading.Event | None = None,
) -> RunSummary:
    reporter = reporter or Reporter()
    cancel = cancel or threading.Event()
    start = time.monotonic()

    targets = target_source.produce()
    logging.info(
        [
            "sync",
            spec.name,
            conflict_policy.value,
            f"{len(targets)} target(s)",
        ]
    )
    reconciler = PolicyReconciler(store=store, dry_run=dry_run)
    summary = RunSummary()

    def outcomes() -> Iterator[Outcome]:
        yield from reconcile_targets(
            reconciler, targets, spec, conflict_policy, thread_pool_size, cancel
        )
        # a late interrupt after the last target does not count as a cancelled run
        summary.cancelled = cancel.is_set() and len(summary.outcomes) < len(targets)

    with cancel_on_sigint(cancel):
        reporter.report(outcomes(), summary)

    metrics.set_run_result(time.monotonic() - start, failed=not summary.ok)
    return summary


def run(
    dry_run: bool,
    targets: Sequence[str] = (),
    discover_all: bool = False,
    conflict_policy: ConflictPolicy = ConflictPolicy.SKIP_IF_EXISTS,
    owner: str | None = None,
    include_forks: bool = False,
    include_archived: bool = False,
    thread_pool_size: int = 1,
    stdin: TextIO | None = None,
    prompt: Any = None,
) -> RunSummary:
    token = config.github_token()
    api_url = config.github_api_url()
    target_source = build_target_source(
        targets=targets,
        discover_all=discover_all,
        owner=owner or config.github_owner(),
        token=token,
        api_url=api_url,
        include_forks=include_forks,
        include_archived=include_archived,
        stdin=stdin,
        prompt=prompt,
    )
    with GithubRulesetsClient(host=api_url, token=token) as store:
        return sync(
            target_source=target_source,
            store=store,
            dry_run=dry_run,
            conflict_policy=conflict_policy,
            thread_pool_size=thread_pool_size,
        )

import logging
from collections.abc import (
    Callable,
    Iterable,
)
from dataclasses import dataclass, field
from enum import Enum
from typing import TextIO

from ruleset_reconcile.policy_sync.models import is_valid_target
from ruleset_reconcile.utils.exceptions import DiscoveryError


class TargetSourceMode(Enum):
    ALL = "all"
    EXPLICIT = "explicit"
    INTERACTIVE = "interactive"


def qualify(name: str, owner: str | None) -> str:
    """Prefix a bare repository name with the default owner."""
    name = name.strip()
    if owner and name and "/" not in name:
        return f"{owner}/{name}"
    return name


def dedup(targets: Iterable[str]) -> list[str]:
    """Drop empty entries and duplicates, keeping first-seen order."""
    return list(dict.fromkeys(t for t in targets if t))


def read_interactive(
    stream: TextIO, prompt: Callable[[str], None] | None = None
) -> list[str]:
    """Read one target per line until a blank line or end of input."""
    if prompt:
        prompt("Enter repositories (owner/name), one per line. Empty line to finish:")
    targets = []
    for line in iter(stream.readline, ""):
        line = line.strip()
        if not line:
            break
        targets.append(line)
    return targets


@dataclass
class TargetSource:
    """Produces the ordered list of targets for a run.

    Invalid identifiers are kept: the reconciler reports them as failed
    so they show up in the run summary.
    """

    mode: TargetSourceMode
    targets: list[str] = field(default_factory=list)
    owner: str | None = None
    discover: Callable[[str], list[str]] | None = None
    stream: TextIO | None = None
    prompt: Callable[[str], None] | None = None

    def _raw(self) -> list[str]:
        match self.mode:
            case TargetSourceMode.ALL:
                if not self.owner:
                    raise DiscoveryError(
                        "<unset>", "an owner is required to discover repositories"
                    )
                if self.discover is None:
                    raise DiscoveryError(self.owner, "no discovery configured")
                return self.discover(self.owner)
            case TargetSourceMode.EXPLICIT:
                return list(self.targets)
            case TargetSourceMode.INTERACTIVE:
                if self.stream is None:
                    raise ValueError("interactive mode needs an input stream")
                return read_interactive(self.stream, self.prompt)

    def produce(self) -> list[str]:
        targets = dedup(qualify(t, self.owner) for t in self._raw())
        for t in targets:
            if not is_valid_target(t):
                logging.warning(f"invalid target {t!r} will be reported as failed")
        logging.debug(["targets", self.mode.value, len(targets)])
        return targets

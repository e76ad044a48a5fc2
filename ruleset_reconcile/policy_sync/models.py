import re
from dataclasses import dataclass, field
from enum import Enum

TARGET_ID_REGEX = re.compile(r"^(?!\.+/)[A-Za-z0-9._-]+/(?!\.+$)[A-Za-z0-9._-]+$")


def is_valid_target(target: str) -> bool:
    """<owner>/<name>, neither part empty nor made of dots only."""
    return isinstance(target, str) and bool(TARGET_ID_REGEX.fullmatch(target))


class ConflictPolicy(Enum):
    """What to do when the target already carries the policy."""

    REPLACE = "replace"
    SKIP_IF_EXISTS = "skip"


class OutcomeKind(Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


# Outcome.reason values
EXISTING_POLICY_PRESERVED = "existing policy preserved"
VALIDATION_ERROR = "validation-error"
QUERY_ERROR = "query-error"
AUTH_ERROR = "auth-error"
CREATE_ERROR = "create-error"
UNEXPECTED_ERROR = "unexpected-error"


@dataclass(frozen=True)
class Outcome:
    target: str
    kind: OutcomeKind
    reason: str | None = None
    detail: str | None = None
    policy_ids: tuple[int | str, ...] = field(default_factory=tuple)

    @classmethod
    def applied(
        cls, target: str, policy_id: int | str | None, detail: str | None = None
    ) -> "Outcome":
        return cls(
            target=target,
            kind=OutcomeKind.APPLIED,
            detail=detail,
            policy_ids=() if policy_id is None else (policy_id,),
        )

    @classmethod
    def skipped(
        cls, target: str, reason: str, policy_ids: tuple[int | str, ...] = ()
    ) -> "Outcome":
        return cls(
            target=target,
            kind=OutcomeKind.SKIPPED,
            reason=reason,
            policy_ids=policy_ids,
        )

    @classmethod
    def failed(cls, target: str, reason: str, detail: str) -> "Outcome":
        return cls(target=target, kind=OutcomeKind.FAILED, reason=reason, detail=detail)

    @property
    def ok(self) -> bool:
        return self.kind != OutcomeKind.FAILED

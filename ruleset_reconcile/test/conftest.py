import itertools
from collections.abc import Callable, Iterator, Sequence

import pytest

from ruleset_reconcile.utils import config
from ruleset_reconcile.utils.exceptions import (
    StoreCreateError,
    StoreDeleteError,
    StoreQueryError,
)
from ruleset_reconcile.utils.github_rulesets.models import (
    ExistingPolicy,
    RulesetPayload,
)


class InMemoryPolicyStore:
    """Policy store keeping rulesets in a dict and recording every call."""

    def __init__(self) -> None:
        self.default_refs: dict[str, str | None] = {}
        self.policies: dict[str, dict[int | str, RulesetPayload | None]] = {}
        self.names: dict[tuple[str, int | str], str] = {}
        self.failing_queries: set[str] = set()
        self.failing_deletes: set[str] = set()
        self.failing_creates: set[str] = set()
        self.calls: list[tuple] = []
        self._ids = itertools.count(100)

    def add_existing(
        self, target: str, policy_id: int | str, name: str = "Main Branch Ruleset"
    ) -> None:
        self.policies.setdefault(target, {})[policy_id] = None
        self.names[target, policy_id] = name

    def resolve_default_ref(self, target: str) -> str | None:
        self.calls.append(("resolve_default_ref", target))
        return self.default_refs.get(target)

    def list_policies(self, target: str) -> Sequence[ExistingPolicy]:
        self.calls.append(("list_policies", target))
        if target in self.failing_queries:
            raise StoreQueryError(target, "Server Error")
        return [
            ExistingPolicy(id=policy_id, name=self.names[target, policy_id])
            for policy_id in self.policies.get(target, {})
        ]

    def delete_policy(self, target: str, policy_id: int | str) -> None:
        self.calls.append(("delete_policy", target, policy_id))
        if target in self.failing_deletes:
            raise StoreDeleteError(target, "Not Found")
        del self.policies[target][policy_id]

    def create_policy(self, target: str, payload: RulesetPayload) -> int | str:
        self.calls.append(("create_policy", target, payload))
        if target in self.failing_creates:
            raise StoreCreateError(target, "Validation Failed")
        policy_id = next(self._ids)
        self.policies.setdefault(target, {})[policy_id] = payload
        self.names[target, policy_id] = payload.name
        return policy_id

    def calls_of(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def store() -> InMemoryPolicyStore:
    return InMemoryPolicyStore()


@pytest.fixture
def github_config() -> Iterator[Callable[..., dict]]:
    def _github_config(**github: str) -> dict:
        return config.init({"github": github} if github else {})

    yield _github_config
    config.init({})

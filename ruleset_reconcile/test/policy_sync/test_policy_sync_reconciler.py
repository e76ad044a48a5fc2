import pytest

from ruleset_reconcile.policy_sync.models import (
    AUTH_ERROR,
    CREATE_ERROR,
    EXISTING_POLICY_PRESERVED,
    QUERY_ERROR,
    VALIDATION_ERROR,
    ConflictPolicy,
    OutcomeKind,
)
from ruleset_reconcile.policy_sync.reconciler import PolicyReconciler
from ruleset_reconcile.test.conftest import InMemoryPolicyStore
from ruleset_reconcile.utils.exceptions import AuthError, StoreQueryError
from ruleset_reconcile.utils.github_rulesets.models import MAIN_BRANCH_RULESET

SPEC = MAIN_BRANCH_RULESET


@pytest.fixture
def reconciler(store: InMemoryPolicyStore) -> PolicyReconciler:
    return PolicyReconciler(store=store)


def test_fresh_target_skip_mode(
    store: InMemoryPolicyStore, reconciler: PolicyReconciler
) -> None:
    store.default_refs["acme/widget"] = "develop"

    outcome = reconciler.reconcile("acme/widget", SPEC, ConflictPolicy.SKIP_IF_EXISTS)

    assert outcome.kind == OutcomeKind.APPLIED
    assert outcome.policy_ids == (100,)
    creates = store.calls_of("create_policy")
    assert len(creates) == 1
    payload = creates[0][2].dump()
    assert payload["conditions"]["ref_name"]["include"] == ["refs/heads/develop"]
    assert payload["rules"][1]["parameters"]["required_approving_review_count"] == 0


def test_already_configured_target_skip_mode(
    store: InMemoryPolicyStore, reconciler: PolicyReconciler
) -> None:
    store.add_existing("acme/widget", "42")

    outcome = reconciler.reconcile("acme/widget", SPEC, ConflictPolicy.SKIP_IF_EXISTS)

    assert outcome.kind == OutcomeKind.SKIPPED
    assert outcome.reason == EXISTING_POLICY_PRESERVED
    assert outcome.policy_ids == ("42",)
    assert store.calls_of("delete_policy") == []
    assert store.calls_of("create_policy") == []


def test_replace_mode_with_two_stale_policies(
    store: InMemoryPolicyStore, reconciler: PolicyReconciler
) -> None:
    store.add_existing("acme/legacy", "7")
    store.add_existing("acme/legacy", "9")

    outcome = reconciler.reconcile("acme/legacy", SPEC, ConflictPolicy.REPLACE)

    assert outcome.kind == OutcomeKind.APPLIED
    deleted = {c[2] for c in store.calls_of("delete_policy")}
    assert deleted == {"7", "9"}
    assert len(store.calls_of("create_policy")) == 1
    assert list(store.policies["acme/legacy"]) == [100]
    # deletes happen before the create
    names = [c[0] for c in store.calls]
    assert names.index("create_policy") > max(
        i for i, n in enumerate(names) if n == "delete_policy"
    )


def test_idempotence_skip_mode(
    store: InMemoryPolicyStore, reconciler: PolicyReconciler
) -> None:
    first = reconciler.reconcile("acme/widget", SPEC, ConflictPolicy.SKIP_IF_EXISTS)
    after_first = dict(store.policies["acme/widget"])

    second = reconciler.reconcile("acme/widget", SPEC, ConflictPolicy.SKIP_IF_EXISTS)

    assert first.kind == OutcomeKind.APPLIED
    assert second.kind == OutcomeKind.SKIPPED
    assert second.policy_ids == first.policy_ids
    assert store.policies["acme/widget"] == after_first


def test_ref_fallback_when_not_found(
    store: InMemoryPolicyStore, reconciler: PolicyReconciler
) -> None:
    reconciler.reconcile("acme/widget", SPEC, ConflictPolicy.SKIP_IF_EXISTS)

    payload = store.calls_of("create_policy")[0][2]
    assert payload.ref_include == ["refs/heads/main"]


def test_ref_fallback_when_resolution_fails(
    store: InMemoryPolicyStore, reconciler: PolicyReconciler, mocker
) -> None:
    mocker.patch.object(
        store,
        "resolve_default_ref",
        side_effect=StoreQueryError("acme/widget", "Bad Gateway"),
    )

    outcome = reconciler.reconcile("acme/widget", SPEC, ConflictPolicy.REPLACE)

    assert outcome.kind == OutcomeKind.APPLIED
    assert store.calls_of("create_policy")[0][2].ref_include == ["refs/heads/main"]


def test_custom_fallback_ref(store: InMemoryPolicyStore) -> None:
    reconciler = PolicyReconciler(store=store, fallback_ref="master")
    reconciler.reconcile("acme/widget", SPEC, ConflictPolicy.SKIP_IF_EXISTS)
    assert store.calls_of("create_policy")[0][2].ref_include == ["refs/heads/master"]


@pytest.mark.parametrize(
    "target",
    [
        "",
        "widget",
        "acme/widget/extra",
        "/widget",
        "a b/c",
        "acme/.",
        "acme/..",
        "../widget",
    ],
)
def test_invalid_target_never_reaches_store(
    store: InMemoryPolicyStore, reconciler: PolicyReconciler, target: str
) -> None:
    outcome = reconciler.reconcile(target, SPEC, ConflictPolicy.SKIP_IF_EXISTS)

    assert outcome.kind == OutcomeKind.FAILED
    assert outcome.reason == VALIDATION_ERROR
    assert store.calls == []


def test_query_failure(
    store: InMemoryPolicyStore, reconciler: PolicyReconciler
) -> None:
    store.failing_queries.add("acme/widget")

    outcome = reconciler.reconcile("acme/widget", SPEC, ConflictPolicy.SKIP_IF_EXISTS)

    assert outcome.kind == OutcomeKind.FAILED
    assert outcome.reason == QUERY_ERROR
    assert outcome.detail == "Server Error"
    assert store.calls_of("create_policy") == []


def test_auth_failure(
    store: InMemoryPolicyStore, reconciler: PolicyReconciler, mocker
) -> None:
    mocker.patch.object(
        store,
        "list_policies",
        side_effect=AuthError("acme/widget", "Bad credentials"),
    )

    outcome = reconciler.reconcile("acme/widget", SPEC, ConflictPolicy.SKIP_IF_EXISTS)

    assert outcome.kind == OutcomeKind.FAILED
    assert outcome.reason == AUTH_ERROR
    assert outcome.detail == "Bad credentials"


def test_create_failure_keeps_store_detail(
    store: InMemoryPolicyStore, reconciler: PolicyReconciler
) -> None:
    store.failing_creates.add("acme/widget")

    outcome = reconciler.reconcile("acme/widget", SPEC, ConflictPolicy.SKIP_IF_EXISTS)

    assert outcome.kind == OutcomeKind.FAILED
    assert outcome.reason == CREATE_ERROR
    assert outcome.detail == "Validation Failed"


def test_delete_failure_does_not_prevent_create(
    store: InMemoryPolicyStore, reconciler: PolicyReconciler
) -> None:
    store.add_existing("acme/legacy", "7")
    store.failing_deletes.add("acme/legacy")

    outcome = reconciler.reconcile("acme/legacy", SPEC, ConflictPolicy.REPLACE)

    assert outcome.kind == OutcomeKind.APPLIED
    assert len(store.calls_of("delete_policy")) == 1
    assert len(store.calls_of("create_policy")) == 1


def test_rulesets_with_other_names_are_ignored(
    store: InMemoryPolicyStore, reconciler: PolicyReconciler
) -> None:
    store.add_existing("acme/widget", "5", name="Release Tags")

    outcome = reconciler.reconcile("acme/widget", SPEC, ConflictPolicy.REPLACE)

    assert outcome.kind == OutcomeKind.APPLIED
    assert store.calls_of("delete_policy") == []
    assert "5" in store.policies["acme/widget"]


@pytest.mark.parametrize(
    "mode", [ConflictPolicy.REPLACE, ConflictPolicy.SKIP_IF_EXISTS]
)
def test_dry_run_does_not_mutate(
    store: InMemoryPolicyStore, mode: ConflictPolicy
) -> None:
    store.add_existing("acme/legacy", "7")
    reconciler = PolicyReconciler(store=store, dry_run=True)

    outcome = reconciler.reconcile("acme/fresh", SPEC, mode)
    legacy = reconciler.reconcile("acme/legacy", SPEC, mode)

    assert outcome.kind == OutcomeKind.APPLIED
    assert outcome.detail == "dry-run"
    expected = (
        OutcomeKind.APPLIED if mode == ConflictPolicy.REPLACE else OutcomeKind.SKIPPED
    )
    assert legacy.kind == expected
    assert store.calls_of("delete_policy") == []
    assert store.calls_of("create_policy") == []

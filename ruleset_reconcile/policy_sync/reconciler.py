import logging
from collections.abc import Sequence
from typing import Protocol

from ruleset_reconcile.policy_sync.models import (
    AUTH_ERROR,
    CREATE_ERROR,
    EXISTING_POLICY_PRESERVED,
    QUERY_ERROR,
    VALIDATION_ERROR,
    ConflictPolicy,
    Outcome,
    is_valid_target,
)
from ruleset_reconcile.utils.exceptions import (
    AuthError,
    PolicyStoreError,
    TargetValidationError,
)
from ruleset_reconcile.utils.github_rulesets.models import (
    ExistingPolicy,
    PolicySpec,
    RulesetPayload,
)

FALLBACK_REF = "main"


class PolicyStore(Protocol):
    """Capabilities the reconciler needs from the remote policy store.

    Implementations signal failures by raising PolicyStoreError.
    """

    def resolve_default_ref(self, target: str) -> str | None: ...

    def list_policies(self, target: str) -> Sequence[ExistingPolicy]: ...

    def delete_policy(self, target: str, policy_id: int | str) -> None: ...

    def create_policy(self, target: str, payload: RulesetPayload) -> int | str: ...


class PolicyReconciler:
    def __init__(
        self,
        store: PolicyStore,
        dry_run: bool = False,
        fallback_ref: str = FALLBACK_REF,
    ):
        self.store = store
        self.dry_run = dry_run
        self.fallback_ref = fallback_ref

    def _resolve_ref(self, target: str) -> str:
        try:
            ref = self.store.resolve_default_ref(target)
        except PolicyStoreError as e:
            logging.info(
                f"could not resolve default branch of {target}, "
                f"using {self.fallback_ref}: {e.detail}"
            )
            return self.fallback_ref
        if not ref:
            logging.info(
                f"no default branch found for {target}, using {self.fallback_ref}"
            )
            return self.fallback_ref
        return ref

    def _delete_existing(
        self, target: str, existing: Sequence[ExistingPolicy]
    ) -> None:
        # best-effort: a failed delete never prevents the create
        for policy in existing:
            logging.info(["delete_ruleset", target, policy.id])
            if self.dry_run:
                continue
            try:
                self.store.delete_policy(target, policy.id)
            except PolicyStoreError as e:
                logging.warning(
                    f"failed to delete ruleset {policy.id} of {target}: {e.detail}"
                )

    def reconcile(
        self, target: str, spec: PolicySpec, mode: ConflictPolicy
    ) -> Outcome:
        """Apply spec to a single target and classify the result.

        Never raises for store failures, they are returned as a failed Outcome.
        """
        if not is_valid_target(target):
            return Outcome.failed(
                target, VALIDATION_ERROR, str(TargetValidationError(target))
            )

        ref = self._resolve_ref(target)

        try:
            existing = [
                p for p in self.store.list_policies(target) if p.name == spec.name
            ]
        except PolicyStoreError as e:
            logging.error(["list_rulesets", target, e.detail])
            reason = AUTH_ERROR if isinstance(e, AuthError) else QUERY_ERROR
            return Outcome.failed(target, reason, e.detail)

        if existing and mode == ConflictPolicy.SKIP_IF_EXISTS:
            ids = tuple(p.id for p in existing)
            logging.info(["skip_ruleset", target, *ids])
            return Outcome.skipped(target, EXISTING_POLICY_PRESERVED, ids)

        if existing:
            self._delete_existing(target, existing)

        payload = spec.render(ref)
        logging.info(["create_ruleset", target, *payload.ref_include])
        if self.dry_run:
            return Outcome.applied(target, None, detail="dry-run")

        try:
            policy_id = self.store.create_policy(target, payload)
        except PolicyStoreError as e:
            logging.error(["create_ruleset", target, e.detail])
            reason = AUTH_ERROR if isinstance(e, AuthError) else CREATE_ERROR
            return Outcome.failed(target, reason, e.detail)

        return Outcome.applied(target, policy_id)

import json
import logging
import tempfile
from typing import Any

import requests

from ruleset_reconcile.utils.exceptions import (
    AuthError,
    PolicyStoreError,
    StoreCreateError,
    StoreDeleteError,
    StoreQueryError,
)
from ruleset_reconcile.utils.github_rulesets.models import (
    ExistingPolicy,
    RulesetPayload,
)
from ruleset_reconcile.utils.rest_api_base import (
    ApiBase,
    PaginationError,
    TokenAuth,
)

API_VERSION = "2022-11-28"

# serialized payloads above this size are spooled to disk
SPOOL_MAX_SIZE = 64 * 1024


def error_detail(e: requests.exceptions.RequestException) -> str:
    """Prefer the 'message' of a GitHub error body over the generic HTTP error."""
    response = e.response
    if response is not None:
        try:
            return response.json().get("message") or str(e)
        except (ValueError, AttributeError):
            pass
    return str(e)


class GithubRulesetsClient(ApiBase):
    """Repository rulesets over the GitHub REST API.

    PyGithub does not cover rulesets, hence the plain REST client.
    Every failure is raised as a PolicyStoreError subclass.
    """

    def __init__(self, host: str, token: str | None, **kwargs: Any) -> None:
        super().__init__(
            host=host, auth=TokenAuth(token) if token else None, **kwargs
        )
        self.token = token
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        })

    def _store_error(
        self,
        error_cls: type[PolicyStoreError],
        target: str,
        e: requests.exceptions.RequestException,
    ) -> PolicyStoreError:
        if e.response is not None and e.response.status_code in {401, 403}:
            return AuthError(target, error_detail(e))
        return error_cls(target, error_detail(e))

    def _check_token(self, target: str) -> None:
        if not self.token:
            raise AuthError(target, "no GitHub token configured")

    def resolve_default_ref(self, target: str) -> str | None:
        """Default branch of the repository, None if it can not be found."""
        self._check_token(target)
        try:
            repo = self._get(f"/repos/{target}")
        except requests.exceptions.RequestException as e:
            if e.response is not None and e.response.status_code == 404:
                return None
            raise self._store_error(StoreQueryError, target, e) from e
        if not isinstance(repo, dict):
            raise StoreQueryError(target, f"malformed response: {repo!r}")
        return repo.get("default_branch") or None

    def list_policies(self, target: str) -> list[ExistingPolicy]:
        """Rulesets defined on the repository itself. Empty if there are none."""
        self._check_token(target)
        try:
            rulesets = self._list(
                f"/repos/{target}/rulesets",
                params={"per_page": 100, "includes_parents": "false"},
            )
        except requests.exceptions.RequestException as e:
            # only a missing repository means there are no rulesets
            if (
                not isinstance(e, PaginationError)
                and e.response is not None
                and e.response.status_code == 404
            ):
                return []
            raise self._store_error(StoreQueryError, target, e) from e
        try:
            return [ExistingPolicy(**r) for r in rulesets]
        except (TypeError, ValueError) as e:
            raise StoreQueryError(target, f"malformed response: {e}") from e

    def delete_policy(self, target: str, policy_id: int | str) -> None:
        self._check_token(target)
        try:
            self._delete(f"/repos/{target}/rulesets/{policy_id}")
        except requests.exceptions.RequestException as e:
            raise self._store_error(StoreDeleteError, target, e) from e

    def create_policy(self, target: str, payload: RulesetPayload) -> int | str:
        """Create the ruleset and return the id assigned by GitHub."""
        self._check_token(target)
        with tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE) as buffer:
            buffer.write(json.dumps(payload.dump()).encode("utf-8"))
            buffer.seek(0)
            try:
                created = self._post(
                    f"/repos/{target}/rulesets", data=buffer.read()
                )
            except requests.exceptions.RequestException as e:
                raise self._store_error(StoreCreateError, target, e) from e
        policy_id = created.get("id") if isinstance(created, dict) else None
        if policy_id is None:
            logging.debug(["create_ruleset_response", target, created])
            raise StoreCreateError(target, f"malformed response: {created!r}")
        return policy_id

"""Pydantic models for the GitHub repository rulesets API.

The models mirror the REST wire format: ``RulesetPayload.dump()`` is what
gets posted to ``/repos/{owner}/{repo}/rulesets`` and a payload parsed back
from that JSON compares equal to the original.
"""

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

REF_PREFIX = "refs/heads/"


class MergeMethod(StrEnum):
    MERGE = "merge"
    SQUASH = "squash"
    REBASE = "rebase"


class RulesetTarget(StrEnum):
    BRANCH = "branch"


class Enforcement(StrEnum):
    ACTIVE = "active"


class RefNameCondition(BaseModel):
    model_config = ConfigDict(frozen=True)

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()


class Conditions(BaseModel):
    model_config = ConfigDict(frozen=True)

    ref_name: RefNameCondition = RefNameCondition()


class NonFastForwardRule(BaseModel):
    """Blocks force pushes to the matching refs."""

    model_config = ConfigDict(frozen=True)

    type: Literal["non_fast_forward"] = "non_fast_forward"


class PullRequestParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    required_approving_review_count: int = Field(0, ge=0, le=10)
    dismiss_stale_reviews_on_push: bool = True
    required_review_thread_resolution: bool = True
    # mandatory on the GitHub side, not configurable here
    require_code_owner_review: bool = False
    require_last_push_approval: bool = False
    allowed_merge_methods: tuple[MergeMethod, ...] = (
        MergeMethod.MERGE,
        MergeMethod.SQUASH,
        MergeMethod.REBASE,
    )


class PullRequestRule(BaseModel):
    """Requires changes to land through a pull request."""

    model_config = ConfigDict(frozen=True)

    type: Literal["pull_request"] = "pull_request"
    parameters: PullRequestParameters = PullRequestParameters()


Rule = NonFastForwardRule | PullRequestRule


class RulesetPayload(BaseModel):
    """A concrete ruleset, ready to be created on one repository."""

    model_config = ConfigDict(frozen=True)

    name: str
    target: RulesetTarget = RulesetTarget.BRANCH
    enforcement: Enforcement = Enforcement.ACTIVE
    conditions: Conditions
    rules: tuple[Rule, ...]

    def dump(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @property
    def ref_include(self) -> list[str]:
        return list(self.conditions.ref_name.include)

    @property
    def ref_exclude(self) -> list[str]:
        return list(self.conditions.ref_name.exclude)


class PolicySpec(BaseModel):
    """Desired ruleset template shared by every target of a run.

    ``ref_pattern`` is a ``str.format`` template with a ``{ref}`` placeholder
    which is substituted with the resolved default branch of each target.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    target: RulesetTarget = RulesetTarget.BRANCH
    enforcement: Enforcement = Enforcement.ACTIVE
    ref_pattern: str = REF_PREFIX + "{ref}"
    ref_exclude: tuple[str, ...] = ()
    rules: tuple[Rule, ...]

    def render(self, ref: str) -> RulesetPayload:
        return RulesetPayload(
            name=self.name,
            target=self.target,
            enforcement=self.enforcement,
            conditions=Conditions(
                ref_name=RefNameCondition(
                    include=(self.ref_pattern.format(ref=ref),),
                    exclude=self.ref_exclude,
                )
            ),
            rules=self.rules,
        )


class ExistingPolicy(BaseModel):
    """A ruleset already present on a repository, as listed by the API."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int | str
    name: str
    target: str | None = None
    enforcement: str | None = None


MAIN_BRANCH_RULESET = PolicySpec(
    name="Main Branch Ruleset",
    rules=(
        NonFastForwardRule(),
        PullRequestRule(
            parameters=PullRequestParameters(
                required_approving_review_count=0,
                dismiss_stale_reviews_on_push=True,
                required_review_thread_resolution=True,
            )
        ),
    ),
)

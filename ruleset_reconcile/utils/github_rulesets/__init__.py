from ruleset_reconcile.utils.github_rulesets.client import GithubRulesetsClient
from ruleset_reconcile.utils.github_rulesets.models import (
    MAIN_BRANCH_RULESET,
    ExistingPolicy,
    PolicySpec,
    RulesetPayload,
)

__all__ = [
    "MAIN_BRANCH_RULESET",
    "ExistingPolicy",
    "GithubRulesetsClient",
    "PolicySpec",
    "RulesetPayload",
]

from collections.abc import Iterator

from github import Github, GithubException, UnknownObjectException
from github.Repository import Repository

from ruleset_reconcile.utils.exceptions import DiscoveryError


def _owner_repos(gh: Github, owner: str) -> Iterator[Repository]:
    try:
        yield from gh.get_organization(owner).get_repos(type="all")
    except UnknownObjectException:
        # not an organization, list the repositories of the user instead
        yield from gh.get_user(owner).get_repos(type="owner")


def discover_repositories(
    gh: Github,
    owner: str,
    include_forks: bool = False,
    include_archived: bool = False,
) -> list[str]:
    """Full names of the repositories owned by owner, in API order."""
    try:
        return [
            repo.full_name
            for repo in _owner_repos(gh, owner)
            if (include_forks or not repo.fork)
            and (include_archived or not repo.archived)
        ]
    except GithubException as e:
        detail = e.data.get("message") if isinstance(e.data, dict) else None
        raise DiscoveryError(owner, detail or str(e)) from e

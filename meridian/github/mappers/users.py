"""GitHub user <-> domain User."""

from ...core.primitives import User
from ..config import GitHubRepoConfig
from ..deterministic_id import USER_ID_NAMESPACE, generate_deterministic_id
from .types import GitHubUser

DELETED_USER_NAME = "Deleted User"


def user_id_from_login(login: str, config: GitHubRepoConfig) -> str:
    return generate_deterministic_id(
        USER_ID_NAMESPACE, f"{config.owner}/{config.repo}#{login}"
    )


def deleted_user_id(github_comment_id: int, config: GitHubRepoConfig) -> str:
    """Stable per-comment identity for authors whose account no longer exists."""
    return generate_deterministic_id(
        USER_ID_NAMESPACE, f"{config.owner}/{config.repo}#deleted-{github_comment_id}"
    )


def to_domain(github_user: GitHubUser, config: GitHubRepoConfig) -> User:
    login = github_user["login"]
    return User(
        id=user_id_from_login(login, config),
        name=login,
        email=None,
        avatar_url=github_user.get("avatar_url") or None,
    )


def to_domain_from_deleted_user(github_comment_id: int, config: GitHubRepoConfig) -> User:
    return User(
        id=deleted_user_id(github_comment_id, config),
        name=DELETED_USER_NAME,
    )

"""GitHub issue comment <-> domain Comment."""

from typing import Any, Dict

from ...core.comment import Comment, CommentCreate, CommentUpdate
from ..config import GitHubRepoConfig
from ..deterministic_id import comment_id
from . import users
from .types import GitHubComment
from .util import parse_timestamp

EMPTY_COMMENT_BODY = "(empty comment)"


def to_domain(github_comment: GitHubComment, issue_id: str, config: GitHubRepoConfig) -> Comment:
    github_user = github_comment.get("user")
    if github_user:
        author = users.to_domain(github_user, config)
    else:
        author = users.to_domain_from_deleted_user(github_comment["id"], config)

    return Comment(
        id=comment_id(config.owner, config.repo, github_comment["id"]),
        body=github_comment.get("body") or EMPTY_COMMENT_BODY,
        author_id=author.id,
        issue_id=issue_id,
        created_at=parse_timestamp(github_comment["created_at"]),
        updated_at=parse_timestamp(github_comment["updated_at"]),
    )


def to_create_params(
    data: CommentCreate, issue_number: int, config: GitHubRepoConfig
) -> Dict[str, Any]:
    return {
        "owner": config.owner,
        "repo": config.repo,
        "issue_number": issue_number,
        "body": data.body,
    }


def to_update_params(
    data: CommentUpdate, github_comment_id: int, config: GitHubRepoConfig
) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "owner": config.owner,
        "repo": config.repo,
        "comment_id": github_comment_id,
    }
    if data.body is not None:
        params["body"] = data.body
    return params

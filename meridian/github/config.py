"""Per-repository coordinates shared by every GitHub mapper and repository."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, constr


class GitHubRepoConfig(BaseModel):
    """The ``owner/repo`` pair an adapter talks to.

    ``milestone_id`` is the default milestone assigned to issues that carry
    no GitHub milestone of their own.
    """

    model_config = ConfigDict(frozen=True)

    owner: constr(min_length=1)
    repo: constr(min_length=1)
    milestone_id: Optional[str] = None

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    def issue_key(self, number: int) -> str:
        """Hash key for an issue, comment or milestone number in this repo."""
        return f"{self.owner}/{self.repo}#{number}"

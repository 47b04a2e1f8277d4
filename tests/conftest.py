"""Test configuration and fixtures."""

import pytest
import pytest_asyncio
import structlog

import meridian.log

from meridian.adapters import create_services, set_services
from meridian.config import Settings
from meridian.github import (
    GitHubClient,
    GitHubCommentRepository,
    GitHubIssueLinkRepository,
    GitHubIssueRepository,
    GitHubMilestoneRepository,
    GitHubNumberResolver,
    GitHubRepoConfig,
)

from github_fake import BASE_URL, FakeGitHub


@pytest.fixture(autouse=True)
def _reset_logging():
    """Let each test configure logging against its own captured stderr."""
    yield
    meridian.log._configured = False
    structlog.reset_defaults()


@pytest.fixture
def config() -> GitHubRepoConfig:
    return GitHubRepoConfig(owner="acme", repo="widgets")


@pytest.fixture
def fake_github() -> FakeGitHub:
    """A fresh in-memory GitHub repository acme/widgets."""
    return FakeGitHub()


@pytest_asyncio.fixture
async def github_client(fake_github: FakeGitHub) -> GitHubClient:
    client = GitHubClient(token="test-token", base_url=BASE_URL, transport=fake_github.transport())
    yield client
    await client.close()


@pytest.fixture
def resolver(github_client, config) -> GitHubNumberResolver:
    return GitHubNumberResolver(github_client, config)


@pytest.fixture
def issue_repo(github_client, config, resolver) -> GitHubIssueRepository:
    return GitHubIssueRepository(github_client, config, resolver)


@pytest.fixture
def link_repo(github_client, config, resolver) -> GitHubIssueLinkRepository:
    return GitHubIssueLinkRepository(github_client, config, resolver)


@pytest.fixture
def comment_repo(github_client, config, resolver) -> GitHubCommentRepository:
    return GitHubCommentRepository(github_client, config, resolver)


@pytest.fixture
def milestone_repo(github_client, config, resolver) -> GitHubMilestoneRepository:
    return GitHubMilestoneRepository(github_client, config, resolver)


@pytest.fixture
def memory_services():
    """Process-wide services on the in-memory backend, cleared afterwards."""
    services = create_services(Settings(meridian_adapter="memory"))
    set_services(services)
    yield services
    set_services(None)

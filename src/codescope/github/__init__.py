"""Repository host access."""

from codescope.github.client import (
    GitHubClient,
    GitHubError,
    RateLimit,
    RateLimitExceededError,
    RepositoryClient,
    RepositoryNotFoundError,
)

__all__ = [
    "GitHubClient",
    "GitHubError",
    "RateLimit",
    "RateLimitExceededError",
    "RepositoryClient",
    "RepositoryNotFoundError",
]

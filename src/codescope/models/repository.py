"""Repository identifier for the remote repository being analyzed.

Accepts ``owner/repo`` as well as GitHub URLs and validates the result
before any network call is made.
"""

import re
from dataclasses import dataclass

_URL_PREFIX = re.compile(r"^(https?://)?(www\.)?github\.com/", re.IGNORECASE)
_OWNER_REPO = re.compile(r"^([a-zA-Z0-9_.-]+)/([a-zA-Z0-9_.-]+)$")


class InvalidRepositoryError(ValueError):
    """Raised when a repository identifier cannot be parsed."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Invalid GitHub repository: {value!r} (expected owner/repo or a github.com URL)")


@dataclass(frozen=True)
class RepositoryRef:
    """Remote repository being analyzed.

    Attributes:
        owner: Account or organization name
        repo: Repository name
    """

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def parse(cls, value: str) -> "RepositoryRef":
        """Parse ``owner/repo`` or a github.com URL.

        Raises:
            InvalidRepositoryError: If the value is not a repository identifier
        """
        cleaned = _URL_PREFIX.sub("", value.strip()).rstrip("/")
        if cleaned.endswith(".git"):
            cleaned = cleaned[: -len(".git")]
        match = _OWNER_REPO.match(cleaned)
        if not match:
            raise InvalidRepositoryError(value)
        return cls(owner=match.group(1), repo=match.group(2))

    def __str__(self) -> str:
        return self.full_name

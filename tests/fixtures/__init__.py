"""Test fixtures for codescope.

This package provides sample repositories used by the integration tests.

Sample Repositories:
- sample_repos/web_app: Mixed JavaScript/TypeScript/Python project with
  imports, cross-file calls, dead functions and security smells
"""

from pathlib import Path

# Path to fixtures directory
FIXTURES_DIR = Path(__file__).parent

# Path to sample repositories
SAMPLE_REPOS_DIR = FIXTURES_DIR / "sample_repos"

# Specific sample repository paths
WEB_APP_PATH = SAMPLE_REPOS_DIR / "web_app"

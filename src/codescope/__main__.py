"""Entry point for running codescope as a module.

Usage:
    python -m codescope [command] [options]

Example:
    python -m codescope analyze vercel/swr --output swr.json
    python -m codescope check
"""

from codescope.cli import app

if __name__ == "__main__":
    app()

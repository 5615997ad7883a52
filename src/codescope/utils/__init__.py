"""codescope utility modules.

- logging: human/verbose/JSON log output
- numbers: rounding helpers shared by the metrics
"""

from codescope.utils.logging import configure_from_cli, get_logger, setup_logging
from codescope.utils.numbers import round_half_up

__all__ = [
    "configure_from_cli",
    "get_logger",
    "round_half_up",
    "setup_logging",
]

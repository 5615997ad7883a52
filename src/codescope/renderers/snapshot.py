"""JSON snapshot export and import.

A snapshot is the serialized ``AnalysisResult``. Importing validates the
top-level shape first and rejects the whole document on any problem.
"""

import json
import logging
from pathlib import Path
from typing import Any

from codescope.models.analysis import AnalysisResult

logger = logging.getLogger(__name__)

REQUIRED_KEYS: dict[str, type] = {
    "files": list,
    "connections": list,
    "stats": dict,
    "patterns": list,
    "securityIssues": list,
}


class SnapshotValidationError(ValueError):
    """Raised when a snapshot is missing required data or is malformed."""


def to_json(result: AnalysisResult) -> str:
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)


def validate_snapshot(data: Any) -> None:
    """Check the top-level shape of a decoded snapshot.

    Raises:
        SnapshotValidationError: Not an object, a required key is missing,
            or a key has the wrong type
    """
    if not isinstance(data, dict):
        raise SnapshotValidationError("Snapshot must be a JSON object")

    missing = [key for key in REQUIRED_KEYS if key not in data]
    if missing:
        raise SnapshotValidationError(f"Snapshot is missing required keys: {', '.join(missing)}")

    for key, expected in REQUIRED_KEYS.items():
        if not isinstance(data[key], expected):
            raise SnapshotValidationError(f"Snapshot key '{key}' must be a {expected.__name__}")

    if "errors" in data and not isinstance(data["errors"], list):
        raise SnapshotValidationError("Snapshot key 'errors' must be a list")


def from_json(text: str) -> AnalysisResult:
    """Rebuild an AnalysisResult from snapshot text.

    Raises:
        SnapshotValidationError: Invalid JSON or invalid snapshot content
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotValidationError(f"Snapshot is not valid JSON: {e}") from e

    validate_snapshot(data)
    try:
        return AnalysisResult.from_dict(data)
    except (KeyError, TypeError, AttributeError) as e:
        raise SnapshotValidationError(f"Malformed snapshot entry: {e}") from e


def export_snapshot(result: AnalysisResult, output_path: Path) -> Path:
    """Write a snapshot file, creating parent directories as needed."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(to_json(result), encoding="utf-8")
    logger.info("Wrote snapshot to %s", output_path)
    return output_path


def import_snapshot(path: Path) -> AnalysisResult:
    """Load a snapshot file.

    Raises:
        FileNotFoundError: The file does not exist
        SnapshotValidationError: The content is not a valid snapshot
    """
    return from_json(path.read_text(encoding="utf-8"))

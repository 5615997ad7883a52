"""Output formats for analysis results."""

from codescope.renderers.csv_report import export_csv, to_csv
from codescope.renderers.snapshot import (
    SnapshotValidationError,
    export_snapshot,
    from_json,
    import_snapshot,
    to_json,
)

__all__ = [
    "SnapshotValidationError",
    "export_csv",
    "export_snapshot",
    "from_json",
    "import_snapshot",
    "to_csv",
    "to_json",
]

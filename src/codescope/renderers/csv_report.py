"""Per-file CSV summary."""

import csv
import io
import logging
from pathlib import Path

from codescope.models.analysis import AnalysisResult

logger = logging.getLogger(__name__)

CSV_HEADER = ("File", "Path", "Lines", "Functions", "Complexity")


def to_csv(result: AnalysisResult) -> str:
    """One row per file; unfetched files report zeros."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for record in result.files:
        writer.writerow(
            (
                record.name,
                record.path,
                record.line_count or 0,
                len(record.functions or []),
                record.complexity.score if record.complexity is not None else 0,
            )
        )
    return buffer.getvalue()


def export_csv(result: AnalysisResult, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(to_csv(result), encoding="utf-8")
    logger.info("Wrote CSV report to %s", output_path)
    return output_path

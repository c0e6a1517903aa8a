"""
Writer — serialize the pipeline report to JSON.

Filesystem layout (inside the caller's output directory):
    <output_dir>/winres_report.json
"""
import json
import logging
from pathlib import Path
from typing import Optional

from winres.config import settings
from winres.io.schema import PipelineReport

logger = logging.getLogger(__name__)


def write_report(
    report: PipelineReport,
    output_dir: Path,
    filename: Optional[str] = None,
) -> Path:
    """
    Write *report* into *output_dir*.

    Creates *output_dir* if it does not exist.  Returns the report path.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    report_path = output_dir / (filename or settings.REPORT_FILENAME)
    report_path.write_text(
        json.dumps(report.model_dump(mode="json"), indent=2, sort_keys=True)
        + "\n",
        encoding="utf-8",
    )
    logger.info("Wrote %s", report_path)
    return report_path

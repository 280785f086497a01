"""
Report output module.
"""

import logging
import os

from .models import DateWindow, RecordKind

logger = logging.getLogger("dev-report.writer")


def report_filename(window: DateWindow, kind: RecordKind, output_dir: str = ".") -> str:
    """Return the output path for a report, e.g. ``merged-prs-2024-02.md``."""
    name = f"{kind.slug}-{window.year}-{window.two_digit_month}.md"
    return os.path.join(output_dir, name)


def write_report(path: str, content: str) -> str:
    """
    Write the report, replacing any existing file.

    Missing parent directories are created.
    """
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)

    logger.info("Wrote %d characters to %s", len(content), path)
    print(f" 📝 Report created @ {path}\n")
    return path

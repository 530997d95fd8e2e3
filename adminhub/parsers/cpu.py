from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

HEADER_LINES: int = 2
MIN_FIELDS: int = 15
# us sy id wa st gu: idle sits fourth from the end.
IDLE_OFFSET_FROM_END: int = 4


def parse_cpu_usage(text: str | None, row: int | None = None) -> float:
    """Return CPU usage percent (100 - idle) from ``vmstat`` output.

    ``vmstat`` prints two header lines, then one row per sample. The first
    sample averages everything since boot; later ones cover the sampling
    interval. ``row=None`` picks the last data row, i.e. the most recent
    sample. An explicit ``row`` is a 0-indexed line number into the whole
    output, blank lines included, and must point past the header.
    """
    if not text:
        return 0.0
    try:
        lines = text.splitlines()
        data_rows = [i for i in range(HEADER_LINES, len(lines)) if lines[i].strip()]
        if not data_rows:
            logger.debug("vmstat output has no data rows")
            return 0.0

        index = data_rows[-1] if row is None else row
        if index < HEADER_LINES or index >= len(lines):
            logger.debug("vmstat row %s out of range (lines=%d)", row, len(lines))
            return 0.0

        parts = lines[index].split()
        if len(parts) < MIN_FIELDS:
            logger.debug("vmstat row has %d fields, expected >= %d", len(parts), MIN_FIELDS)
            return 0.0

        idle = float(parts[len(parts) - IDLE_OFFSET_FROM_END])
        return 100.0 - idle
    except (ValueError, IndexError):
        logger.warning("Unparseable vmstat output", exc_info=True)
        return 0.0

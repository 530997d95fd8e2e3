from __future__ import annotations

import logging

from adminhub.core.models import MemoryUsage
from adminhub.parsers.sizes import parse_size

logger = logging.getLogger(__name__)


def parse_memory(text: str | None) -> MemoryUsage:
    if not text:
        return MemoryUsage()

    for line in text.splitlines():
        if not line.strip().startswith("Mem:"):
            continue
        parts = line.split()
        if len(parts) < 3:
            logger.debug("Mem: line too short: %r", line)
            return MemoryUsage()

        total_raw, used_raw = parts[1], parts[2]
        try:
            total = parse_size(total_raw)
            used = parse_size(used_raw)
        except ValueError:
            logger.warning("Unparseable memory sizes total=%r used=%r", total_raw, used_raw)
            return MemoryUsage(percent=0.0, total=total_raw, used=used_raw)

        if total <= 0:
            return MemoryUsage(percent=0.0, total=total_raw, used=used_raw)
        return MemoryUsage(percent=used / total * 100.0, total=total_raw, used=used_raw)

    logger.debug("No Mem: line in free output")
    return MemoryUsage()

from __future__ import annotations

import logging
import re

from adminhub.core.models import UNKNOWN_UPTIME

logger = logging.getLogger(__name__)

_UPTIME_WITH_USERS = re.compile(r"\bup\s+(.+?),\s+\d+\s+users?\b")
_UPTIME_LOOSE = re.compile(r"\bup\s+(.+?)(?:,?\s*load averages?:.*)?$")
_LOAD_AVERAGE = re.compile(r"load averages?:\s*([\d.]+)")


def parse_uptime(text: str | None) -> str:
    if not text:
        return UNKNOWN_UPTIME

    line = " ".join(text.split())
    match = _UPTIME_WITH_USERS.search(line)
    if match is None:
        match = _UPTIME_LOOSE.search(line)
    if match is None:
        logger.debug("No uptime in %r", line)
        return UNKNOWN_UPTIME

    value = match.group(1).strip().rstrip(",").strip()
    return value or UNKNOWN_UPTIME


def parse_load_average(text: str | None) -> float:
    """1-minute load average from ``uptime`` output (Linux or BSD spelling)."""
    if not text:
        return 0.0
    match = _LOAD_AVERAGE.search(text)
    if match is None:
        return 0.0
    try:
        return max(0.0, float(match.group(1).rstrip(".")))
    except ValueError:
        logger.warning("Unparseable load average %r", match.group(1))
        return 0.0

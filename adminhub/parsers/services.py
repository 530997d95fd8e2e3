from __future__ import annotations

import logging

from adminhub.core.models import RunningServiceEntry

logger = logging.getLogger(__name__)

UNIT_SUFFIXES: tuple[str, ...] = (
    ".service",
    ".socket",
    ".timer",
    ".target",
    ".mount",
    ".automount",
    ".path",
    ".scope",
    ".slice",
    ".device",
    ".swap",
)

# systemctl marks failed/inactive units with a bullet in the first column.
_STATE_MARKERS: tuple[str, ...] = ("●", "*")

_LEGEND_INDENT: str = " " * 8


def parse_running_services(text: str | None) -> list[RunningServiceEntry]:
    """Parse ``systemctl list-units`` output into service entries.

    Rows look like ``nginx.service loaded active running A high performance web server``.
    The header row, blank lines and the trailing legend are skipped. The
    legend starts at a blank line, a ``Legend:`` line or a deeply indented
    continuation line, and ends only at a line mentioning ``loaded``.
    """
    entries: list[RunningServiceEntry] = []
    if not text:
        return entries

    in_legend = False
    for line in text.splitlines():
        if (
            not line.strip()
            or line.lstrip().startswith("UNIT")
            or line.startswith("Legend:")
            or line.startswith(_LEGEND_INDENT)
        ):
            in_legend = True
            continue

        if in_legend and "loaded" not in line:
            continue
        in_legend = False

        trimmed = line.strip()
        for marker in _STATE_MARKERS:
            if trimmed.startswith(marker):
                trimmed = trimmed[len(marker):].strip()
                break

        parts = trimmed.split()
        if not parts or not parts[0].endswith(UNIT_SUFFIXES):
            continue
        if len(parts) < 4:
            logger.debug("Dropping short unit row: %r", line)
            continue

        entries.append(
            RunningServiceEntry(
                name=parts[0],
                status=f"{parts[2]} {parts[3]}",
                description=" ".join(parts[4:]),
            )
        )

    return entries

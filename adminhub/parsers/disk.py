from __future__ import annotations

import logging

from adminhub.core.models import DiskUsage

logger = logging.getLogger(__name__)

ROOT_MOUNT: str = "/"


def parse_disk(text: str | None) -> DiskUsage:
    """Root filesystem usage from ``df -h`` output.

    Columns are ``Filesystem Size Used Avail Use% Mounted-on``; Size and Used
    are located relative to the ``Use%`` token.
    """
    if not text:
        return DiskUsage()

    for line in text.splitlines():
        parts = line.split()
        if "/dev/" not in line or not parts or parts[-1] != ROOT_MOUNT:
            continue
        if len(parts) < 5:
            continue

        for i, token in enumerate(parts[:-1]):
            if not token.endswith("%"):
                continue
            try:
                percent = float(token[:-1])
            except ValueError:
                logger.warning("Unparseable Use%% column %r", token)
                return DiskUsage()
            if i < 3:
                return DiskUsage(percent=percent)
            return DiskUsage(percent=percent, total=parts[i - 3], used=parts[i - 2])

    logger.debug("No root /dev/ mount in df output")
    return DiskUsage()

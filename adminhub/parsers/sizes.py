from __future__ import annotations

import re

_BINARY_SUFFIXES: dict[str, int] = {
    "Ti": 1024**4,
    "Gi": 1024**3,
    "Mi": 1024**2,
    "Ki": 1024,
}

_NON_NUMERIC = re.compile(r"[^\d.]")


def parse_size(value: str) -> float:
    """Convert a ``free -h`` style size (``7.8Gi``, ``512Mi``, ``1024``) to bytes.

    Raises ValueError for anything that does not contain a number.
    """
    value = value.strip()
    for suffix, factor in _BINARY_SUFFIXES.items():
        if value.endswith(suffix):
            return float(value[: -len(suffix)]) * factor
    digits = _NON_NUMERIC.sub("", value)
    if not digits:
        raise ValueError(f"not a size: {value!r}")
    return float(digits)

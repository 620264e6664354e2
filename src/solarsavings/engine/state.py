"""Best-effort US state extraction from free-text addresses.

The financial model only depends on the ``StateExtractor`` protocol, so the
regex heuristic below can be replaced by a geocoder-backed implementation.
"""
from __future__ import annotations

import re
from typing import Optional, Protocol

_STATE_TOKEN = re.compile(r"\b([A-Z]{2})\b")


class StateExtractor(Protocol):
    def extract(self, address: str) -> Optional[str]:
        """Return a two-letter state code or ``None``."""
        ...


class RegexStateExtractor:
    """First bare two-uppercase-letter token in the address.

    Direction prefixes ("123 NE Main St") win over the real state because they
    come first; callers wanting accuracy should inject a geocoder instead.
    """

    def extract(self, address: str) -> Optional[str]:
        match = _STATE_TOKEN.search(address or "")
        return match.group(1) if match else None


__all__ = ["StateExtractor", "RegexStateExtractor"]

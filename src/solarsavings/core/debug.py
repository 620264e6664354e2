"""Deterministic debug collectors for structured JSON events."""
from __future__ import annotations

import datetime as _dt
import enum
import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol


class DebugCollector(Protocol):
    def emit(self, stage: str, payload: Dict[str, Any], *, ts: Any = None, scope: Optional[str] = None) -> None:
        ...


def _json_safe_scalar(val: Any) -> Any:
    """Convert common non-JSON types to safe representations."""
    if isinstance(val, enum.Enum):
        return val.value
    if isinstance(val, float) and not math.isfinite(val):
        return None
    if isinstance(val, (_dt.datetime, _dt.date, _dt.time)):
        try:
            return val.isoformat()
        except Exception:
            return str(val)
    return val


def _ordered(obj: Any) -> Any:
    """Recursively order mappings for deterministic JSON dumps."""
    if isinstance(obj, dict):
        return {k: _ordered(obj[k]) for k in sorted(obj)}
    if isinstance(obj, (list, tuple)):
        return [_ordered(v) for v in obj]
    return _json_safe_scalar(obj)


def _serialize_ts(ts):
    if ts is None:
        ts = _dt.datetime.now(_dt.timezone.utc)
    if hasattr(ts, "isoformat"):
        try:
            return ts.isoformat()
        except Exception:
            return str(ts)
    return ts


class NullDebugCollector:
    def emit(self, stage: str, payload: Dict[str, Any], *, ts: Any = None, scope: Optional[str] = None) -> None:  # noqa: D401
        """Discard events (no-op)."""
        return


@dataclass
class ListDebugCollector:
    events: List[Dict[str, Any]] = field(default_factory=list)

    def emit(self, stage: str, payload: Dict[str, Any], *, ts: Any = None, scope: Optional[str] = None) -> None:
        event = {
            "stage": stage,
            "ts": ts,
            "scope": scope,
            "payload": _ordered(payload),
        }
        self.events.append(event)

    def stages(self) -> List[str]:
        return [e["stage"] for e in self.events]


class JsonlDebugWriter:
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # open in append text mode
        self._fh = self.path.open("a", encoding="utf-8")

    def emit(self, stage: str, payload: Dict[str, Any], *, ts: Any = None, scope: Optional[str] = None) -> None:
        event = {
            "stage": stage,
            "ts": _serialize_ts(ts),
            "scope": scope,
            "payload": _ordered(payload),
        }
        json.dump(event, self._fh, sort_keys=True)
        self._fh.write("\n")
        self._fh.flush()

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.close()

    def __del__(self):  # pragma: no cover - best effort cleanup
        try:
            self._fh.close()
        except Exception:
            pass


class JsonDebugWriter:
    """Collect all events in memory then write a single JSON array.

    Used when callers pass a ``--debug`` path ending with ``.json`` so a whole
    calculation can be audited from one file.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._events: List[Dict[str, Any]] = []

    def emit(self, stage: str, payload: Dict[str, Any], *, ts: Any = None, scope: Optional[str] = None) -> None:
        event = {
            "stage": stage,
            "ts": _serialize_ts(ts),
            "scope": scope,
            "payload": _ordered(payload),
        }
        self._events.append(event)

    def finalize(self) -> None:
        """Write collected events as a single JSON document."""
        ordered = _ordered(self._events)
        self.path.write_text(json.dumps(ordered, indent=2))

    close = finalize

    def __del__(self):  # pragma: no cover - best effort
        try:
            self.finalize()
        except Exception:
            pass


def build_debug_collector(path: str | Path) -> DebugCollector:
    """Factory: .json → JsonDebugWriter, otherwise JsonlDebugWriter."""
    suffix = str(path).lower()
    if suffix.endswith(".json"):
        return JsonDebugWriter(path)
    return JsonlDebugWriter(path)


class ScopedDebugCollector:
    """Wrapper that injects a fixed scope (request address, user key) into every emit."""

    def __init__(self, inner: DebugCollector, *, scope: Optional[str] = None):
        self.inner = inner
        self.scope = scope

    def emit(self, stage: str, payload: Dict[str, Any], *, ts: Any = None, scope: Optional[str] = None) -> None:
        self.inner.emit(stage, payload, ts=ts, scope=scope if scope is not None else self.scope)


__all__ = [
    "DebugCollector",
    "NullDebugCollector",
    "ListDebugCollector",
    "JsonlDebugWriter",
    "JsonDebugWriter",
    "ScopedDebugCollector",
    "build_debug_collector",
]

"""
Trace decorator for the pure calculation engines.

``@traced_engine`` logs one ``TIMESHEET_ENGINE_TRACE`` record per call with
the engine's name and version, how long it took, and a 16-hex-char SHA-256
fingerprint of the arguments named in ``fingerprint_fields``.  Arguments are
bound against the function signature, so positional and keyword calls with
the same values fingerprint alike.  Mapping keys and set members are sorted
before hashing; names the call leaves unbound hash as ``null``.

    @traced_engine("distribution", "1.0", fingerprint_fields=("project_start",))
    def distribute_weekly_hours(date_range, project_start, weekly_hours):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

# Own logger namespace; configured by the application root.
_logger = logging.getLogger("timesheet_kernel.engines.tracer")


def _canonicalize(value: Any) -> str:
    """Produce a stable string representation of a value for fingerprinting."""
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (set, frozenset)):
        return "{" + ",".join(sorted(_canonicalize(v) for v in value)) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Hash the canonical form of the selected arguments (16 hex chars)."""
    parts = [
        f"{name}={_canonicalize(arguments.get(name))}"
        for name in fingerprint_fields
    ]
    canonical = "|".join(parts)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits TIMESHEET_ENGINE_TRACE for pure engine invocations.

    Args:
        engine_name: Engine identifier (e.g., "distribution").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Parameter names to include in the input
            fingerprint.  Positional and keyword arguments both count.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fp = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.info(
                "TIMESHEET_ENGINE_TRACE",
                extra={
                    "trace_type": "TIMESHEET_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator

"""Runtime patching helpers to instrument Data API collection writes.

``instrument_astra_collection()`` is called from
``vidshare.utils.observability.configure_observability`` and wraps every
mutating ``AsyncCollection`` method in an OpenTelemetry span plus a
Prometheus histogram sample.
"""
from __future__ import annotations

import time
from typing import Any, Awaitable

from opentelemetry import trace

from vidshare.db.astra_client import AstraDBCollection
from vidshare.metrics import ASTRA_DB_QUERY_DURATION_SECONDS

_tracer = trace.get_tracer(__name__)

# method name -> operation label
_INSTRUMENTED_METHODS = {
    "insert_one": "insert",
    "update_one": "update",
    "delete_one": "delete",
    "delete_many": "delete",
    "find_one_and_update": "find_and_update",
}


async def observe(op: str, coro: Awaitable[Any]):  # noqa: D401
    """Await *coro* while recording span + histogram for DB *op*."""

    start = time.perf_counter()
    with _tracer.start_as_current_span(f"astra.{op}") as span:
        try:
            return await coro
        finally:
            duration = time.perf_counter() - start
            ASTRA_DB_QUERY_DURATION_SECONDS.labels(operation=op).observe(duration)
            span.set_attribute("duration_ms", int(duration * 1000))


def _wrap(original, op: str):
    async def _wrapper(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        return await observe(op, original(self, *args, **kwargs))

    _wrapper.__wrapped__ = original  # type: ignore[attr-defined]
    return _wrapper


def instrument_astra_collection() -> None:  # noqa: D401
    """Monkey-patch AstraDBCollection once per process."""

    if getattr(AstraDBCollection, "_vidshare_instrumented", False):
        return

    for method_name, op in _INSTRUMENTED_METHODS.items():
        original = getattr(AstraDBCollection, method_name, None)
        if original is not None:
            setattr(AstraDBCollection, method_name, _wrap(original, op))

    AstraDBCollection._vidshare_instrumented = True  # type: ignore[attr-defined]

# src/narrator_kit/observability/base.py

from collections.abc import Iterator
from contextlib import contextmanager
from time import monotonic
from typing import Protocol


class MetricsHook(Protocol):
    """Sink for latency, counter and gauge samples emitted by the engine."""

    def record_latency(
        self,
        name: str,
        value_ms: float,
        labels: dict[str, str] | None = None,
    ) -> None: ...

    def increment(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None: ...

    def record_gauge(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None: ...


class NoOpMetricsHook:
    def record_latency(
        self, name: str, value_ms: float, labels: dict[str, str] | None = None
    ) -> None:
        pass

    def increment(
        self, name: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        pass

    def record_gauge(
        self, name: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        pass


@contextmanager
def measure(
    hook: MetricsHook,
    name: str,
    labels: dict[str, str] | None = None,
) -> Iterator[None]:
    """Record the wall time of the enclosed block as a latency sample.

    The sample is recorded even when the block raises.
    """
    start = monotonic()
    try:
        yield
    finally:
        hook.record_latency(name, 1000 * (monotonic() - start), labels=labels)

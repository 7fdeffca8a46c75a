"""Counter creation and failure-tolerant reads."""

from __future__ import annotations

import logging
import math

from .capabilities import CounterSource
from .models import CounterHandle, Family, ReadResult

log = logging.getLogger(__name__)


def clamp_percent(value: float) -> float:
    if math.isnan(value) or value < 0.0:
        return 0.0
    if value > 100.0:
        return 100.0
    return value


def active_percent(idle: float) -> float:
    return clamp_percent(100.0 - clamp_percent(idle))


class SampleReader:
    """Creates counters with a discarded warm-up read and reads them into ``ReadResult``."""

    def __init__(self, source: CounterSource) -> None:
        self._source = source

    @property
    def source(self) -> CounterSource:
        return self._source

    def create(
        self,
        family: Family,
        category: str,
        metric: str,
        instance: str,
        index: int | None = None,
    ) -> CounterHandle:
        token = self._source.create_counter(category, metric, instance)
        handle = CounterHandle(
            family=family,
            category=category,
            metric=metric,
            instance=instance,
            index=index,
            token=token,
        )
        # Rate counters need a baseline; the first value is meaningless.
        self.read(handle)
        return handle

    def read(self, handle: CounterHandle) -> ReadResult:
        try:
            value = float(self._source.read_value(handle.token))
        except Exception as exc:
            log.debug("counter read failed: %s(%s)\\%s: %s", handle.category, handle.instance, handle.metric, exc)
            return ReadResult.failed(str(exc) or type(exc).__name__)
        if math.isnan(value):
            return ReadResult.failed("nan")
        return ReadResult.of(value)

    def read_value(self, handle: CounterHandle) -> float:
        return self.read(handle).value_or(0.0)

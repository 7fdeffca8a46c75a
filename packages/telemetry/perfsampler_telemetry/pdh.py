"""Windows Performance Data Helper (PDH) counter source.

Each counter gets its own query so that every read performs one
``PdhCollectQueryData`` and computes the rate against the previous
collection of that same counter.
"""

from __future__ import annotations

import ctypes
import logging
import sys
from dataclasses import dataclass
from typing import Any

from .capabilities import CategoryUnavailableError

log = logging.getLogger(__name__)

ERROR_SUCCESS = 0
PDH_MORE_DATA = 0x800007D2
PDH_CSTATUS_VALID_DATA = 0x00000000
PDH_CSTATUS_NEW_DATA = 0x00000001
PDH_FMT_DOUBLE = 0x00000200
PDH_FMT_NOCAP100 = 0x00008000
PERF_DETAIL_WIZARD = 400

if sys.platform == "win32":  # pragma: no cover - exercised on Windows hosts only
    from ctypes import wintypes

    _HANDLE = wintypes.HANDLE
    _DWORD = wintypes.DWORD
else:
    _HANDLE = ctypes.c_void_p
    _DWORD = ctypes.c_uint32


class PdhError(RuntimeError):
    def __init__(self, func_name: str, status: int) -> None:
        self.status = status & 0xFFFFFFFF
        super().__init__(f"PDH {func_name} failed with error code {hex(self.status)}")


class _PdhCounterValue(ctypes.Structure):
    _fields_ = [("CStatus", _DWORD), ("doubleValue", ctypes.c_double)]


@dataclass
class _PdhCounter:
    path: str
    query: Any
    counter: Any


def _load_pdh() -> Any:
    try:
        return ctypes.WinDLL("pdh.dll")  # type: ignore[attr-defined]
    except (AttributeError, OSError) as exc:
        raise CategoryUnavailableError(f"PDH is not available: {exc}") from exc


def _check(func_name: str, status: int) -> None:
    if status & 0xFFFFFFFF != ERROR_SUCCESS:
        raise PdhError(func_name, status)


def parse_multi_sz(buffer: str) -> list[str]:
    """Split a MULTI_SZ buffer, stopping at the terminating empty string."""
    items: list[str] = []
    for item in buffer.split("\0"):
        if not item:
            break
        items.append(item)
    return items


def counter_path(category: str, metric: str, instance: str) -> str:
    return f"\\{category}({instance})\\{metric}"


class PdhCounterSource:
    def __init__(self, pdh: Any | None = None) -> None:
        self._pdh = pdh if pdh is not None else _load_pdh()

    def list_instances(self, category: str) -> list[str]:
        counter_len = _DWORD(0)
        instance_len = _DWORD(0)
        status = self._pdh.PdhEnumObjectItemsW(
            None,
            None,
            category,
            None,
            ctypes.byref(counter_len),
            None,
            ctypes.byref(instance_len),
            PERF_DETAIL_WIZARD,
            0,
        )
        status &= 0xFFFFFFFF
        if status == ERROR_SUCCESS:
            return []
        if status != PDH_MORE_DATA:
            raise CategoryUnavailableError(f"{category}: {PdhError('PdhEnumObjectItemsW', status)}")

        counters = ctypes.create_unicode_buffer(max(counter_len.value, 1))
        instances = ctypes.create_unicode_buffer(max(instance_len.value, 1))
        status = self._pdh.PdhEnumObjectItemsW(
            None,
            None,
            category,
            counters,
            ctypes.byref(counter_len),
            instances,
            ctypes.byref(instance_len),
            PERF_DETAIL_WIZARD,
            0,
        )
        _check("PdhEnumObjectItemsW", status)
        names = parse_multi_sz(ctypes.wstring_at(instances, instance_len.value))
        log.debug("pdh %s: %d instance(s)", category, len(names))
        return names

    def create_counter(self, category: str, metric: str, instance: str) -> _PdhCounter:
        path = counter_path(category, metric, instance)
        query = _HANDLE()
        _check("PdhOpenQueryW", self._pdh.PdhOpenQueryW(None, 0, ctypes.byref(query)))
        counter = _HANDLE()
        status = self._pdh.PdhAddEnglishCounterW(query, path, 0, ctypes.byref(counter))
        if status & 0xFFFFFFFF != ERROR_SUCCESS:
            self._pdh.PdhCloseQuery(query)
            raise PdhError("PdhAddEnglishCounterW", status)
        return _PdhCounter(path=path, query=query, counter=counter)

    def read_value(self, token: _PdhCounter) -> float:
        _check("PdhCollectQueryData", self._pdh.PdhCollectQueryData(token.query))
        value = _PdhCounterValue()
        status = self._pdh.PdhGetFormattedCounterValue(
            token.counter,
            PDH_FMT_DOUBLE | PDH_FMT_NOCAP100,
            None,
            ctypes.byref(value),
        )
        _check("PdhGetFormattedCounterValue", status)
        if value.CStatus not in (PDH_CSTATUS_VALID_DATA, PDH_CSTATUS_NEW_DATA):
            raise PdhError(f"{token.path} status", value.CStatus)
        return float(value.doubleValue)

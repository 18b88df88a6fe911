"""Data models for zmem.

All sizes are in kB, as reported by the kernel.
"""

import math
from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ProcessMemoryRecord:
    """Immutable memory breakdown of one process."""

    pid: int
    command: str  # At most 50 characters
    rss: int
    pss: int
    uss: int  # Private_Clean + Private_Dirty
    swap: int


@dataclass(slots=True, frozen=True)
class ProcessSnapshot:
    """Process records ordered ascending by swap usage."""

    records: tuple[ProcessMemoryRecord, ...] = ()
    skipped: int = 0  # Listed PIDs that produced no record, pre-filtered ones included

    def __iter__(self) -> Iterator[ProcessMemoryRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def total_rss(self) -> int:
        return sum(r.rss for r in self.records)

    @property
    def total_pss(self) -> int:
        return sum(r.pss for r in self.records)

    @property
    def total_uss(self) -> int:
        return sum(r.uss for r in self.records)

    @property
    def total_swap(self) -> int:
        return sum(r.swap for r in self.records)


@dataclass(slots=True, frozen=True)
class HostMemorySnapshot:
    """
    Host-wide memory counters from a single /proc/meminfo pass.

    Raw fields map one-to-one onto meminfo keys; everything else is derived.
    Note the kernel naming: ``Zswapped`` is the uncompressed amount stored in
    zswap (``zswap`` here) and ``Zswap`` is the compressed pool size
    (``zswap_compressed`` here).
    """

    total: int = 0
    free: int = 0
    available: int = 0
    shared: int = 0
    buffers: int = 0
    cached: int = 0
    swap_total: int = 0
    swap_free: int = 0
    swap_cached: int = 0
    zswap: int = 0
    zswap_compressed: int = 0

    @property
    def used(self) -> int:
        """Memory in use: total - free - buffers - cached."""
        return max(0, self.total - self.free - self.buffers - self.cached)

    @property
    def swap_used(self) -> int:
        return max(0, self.swap_total - self.swap_free)

    @property
    def swap_available(self) -> int:
        return self.swap_total - self.swap_used

    @property
    def compression_ratio(self) -> float:
        """Uncompressed / compressed zswap size, NaN when zswap is empty."""
        if self.zswap_compressed == 0:
            return math.nan
        return self.zswap / self.zswap_compressed

    @property
    def virtual_total(self) -> int:
        return self.total + self.swap_total

    @property
    def virtual_used(self) -> int:
        return self.used + self.swap_used

    @property
    def virtual_free(self) -> int:
        return self.free + self.swap_free

    @property
    def virtual_available(self) -> int:
        return self.available + self.swap_free


@dataclass(slots=True, frozen=True)
class MemoryReport:
    """Both snapshots of one invocation, each with its own failure slot."""

    host: HostMemorySnapshot | None = None
    processes: ProcessSnapshot | None = None
    host_error: str | None = None
    process_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.host_error is None and self.process_error is None

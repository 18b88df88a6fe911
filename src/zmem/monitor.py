"""Snapshot collection engine for zmem."""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path

from zmem.config import Settings
from zmem.errors import MeminfoError, ProcessTableError, ProcessUnavailable
from zmem.models import HostMemorySnapshot, MemoryReport, ProcessMemoryRecord, ProcessSnapshot
from zmem.procfs import (
    PROC_ROOT,
    SmapsSource,
    is_readable,
    parse_cmdline,
    parse_smaps,
    read_descriptor,
    read_meminfo,
)

logger = logging.getLogger(__name__)


def read_host_memory(proc_root: Path = PROC_ROOT) -> HostMemorySnapshot:
    """Take the host-wide memory snapshot."""
    return read_meminfo(proc_root)


class ProcessCollector:
    """
    Collects the memory breakdown of every process in one scan.

    Each process is read and parsed on a worker thread. Processes that exit
    mid-scan, deny access or report a malformed memory map are left out of
    the snapshot; only an unreadable process table fails the scan.
    """

    def __init__(
        self,
        proc_root: Path = PROC_ROOT,
        max_workers: int | None = None,
        source: SmapsSource = SmapsSource.AUTO,
        prefilter: bool = True,
    ) -> None:
        """
        Initialize the ProcessCollector.

        Args:
            proc_root: Mount point of the process table. Default /proc.
            max_workers: Worker thread cap, None for the executor default.
            source: Which memory map file to read per process.
            prefilter: Skip processes with an empty command line or an
                unreadable memory map before scheduling them.
        """
        self._proc_root = proc_root
        self._max_workers = max_workers
        self._source = source
        self._prefilter = prefilter

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProcessCollector":
        return cls(
            proc_root=settings.proc_root,
            max_workers=settings.max_workers,
            source=settings.source,
            prefilter=settings.prefilter,
        )

    @property
    def proc_root(self) -> Path:
        return self._proc_root

    def list_pids(self) -> list[int]:
        """
        List the PIDs in the process table.

        Raises:
            ProcessTableError: The directory cannot be listed.
        """
        try:
            names = [entry.name for entry in self._proc_root.iterdir()]
        except OSError as e:
            raise ProcessTableError(f"cannot list {self._proc_root}: {e.strerror or e}") from e
        return [int(name) for name in names if name.isascii() and name.isdecimal()]

    def collect(self) -> ProcessSnapshot:
        """
        Scan every process and return the snapshot ordered by swap.

        Raises:
            ProcessTableError: The process table cannot be listed.
        """
        started = time.monotonic()
        listed = self.list_pids()
        pids = listed
        if self._prefilter:
            pids = [pid for pid in listed if is_readable(pid, self._proc_root, self._source)]

        logger.info("scanning %d processes under %s", len(pids), self._proc_root)

        records: list[ProcessMemoryRecord] = []
        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="zmem-scan") as pool:
            futures: list[Future[ProcessMemoryRecord | None]] = [
                pool.submit(self._collect_one, pid) for pid in pids
            ]
            # Only this thread touches the result list
            for future in as_completed(futures):
                record = future.result()
                if record is not None:
                    records.append(record)

        records.sort(key=lambda r: (r.swap, r.pid))
        # Pre-filtered PIDs count as skipped too
        skipped = len(listed) - len(records)
        logger.info(
            "collected %d processes (%d skipped) in %.3fs",
            len(records),
            skipped,
            time.monotonic() - started,
        )
        return ProcessSnapshot(records=tuple(records), skipped=skipped)

    def _collect_one(self, pid: int) -> ProcessMemoryRecord | None:
        """Read and parse one process, returning None if it cannot be used."""
        try:
            descriptor = read_descriptor(pid, self._proc_root, self._source)
            memory = parse_smaps(descriptor.smaps)
        except ProcessUnavailable as e:
            logger.debug("skipping %s", e)
            return None
        except ValueError as e:
            logger.debug("skipping pid %d: malformed memory map: %s", pid, e)
            return None

        command = parse_cmdline(descriptor.cmdline)
        if not command:
            # Kernel threads and zombies
            return None

        return ProcessMemoryRecord(
            pid=pid,
            command=command,
            rss=memory.rss,
            pss=memory.pss,
            uss=memory.uss,
            swap=memory.swap,
        )


def take_report(settings: Settings, host: bool = True, processes: bool = True) -> MemoryReport:
    """
    Take the requested snapshots concurrently.

    A failure in one snapshot is recorded in the report and never
    suppresses the other.
    """
    host_snapshot: HostMemorySnapshot | None = None
    process_snapshot: ProcessSnapshot | None = None
    host_error: str | None = None
    process_error: str | None = None

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="zmem-report") as pool:
        host_future = pool.submit(read_host_memory, settings.proc_root) if host else None
        process_future = (
            pool.submit(ProcessCollector.from_settings(settings).collect) if processes else None
        )

        if host_future is not None:
            try:
                host_snapshot = host_future.result()
            except MeminfoError as e:
                logger.debug("memory snapshot failed: %s", e)
                host_error = str(e)

        if process_future is not None:
            try:
                process_snapshot = process_future.result()
            except ProcessTableError as e:
                logger.debug("process snapshot failed: %s", e)
                process_error = str(e)

    return MemoryReport(
        host=host_snapshot,
        processes=process_snapshot,
        host_error=host_error,
        process_error=process_error,
    )

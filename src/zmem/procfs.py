"""Readers and parsers for the Linux /proc virtual files.

The read functions only touch the filesystem; the ``parse_*`` functions are
pure and work on literal text, so they can be tested against fixtures.

Lines in smaps and smaps_rollup look like::

    00400000-004b8000 r-xp 00000000 fd:00 11143998     /usr/bin/foo
    Rss:                 592 kB
    Pss:                  87 kB
    Private_Clean:         0 kB
    Private_Dirty:         4 kB
    Swap:                  0 kB

smaps repeats that block once per mapping, smaps_rollup holds a single block
with the kernel's totals (Linux 4.14 and newer).
"""

import enum
import os
from dataclasses import dataclass
from pathlib import Path

from zmem.errors import MeminfoError, ProcessUnavailable
from zmem.models import HostMemorySnapshot

PROC_ROOT = Path("/proc")
COMMAND_WIDTH = 50


class SmapsSource(enum.Enum):
    """Which per-process memory map file to read."""

    AUTO = "auto"  # smaps_rollup, falling back to smaps
    ROLLUP = "rollup"
    SMAPS = "smaps"


# smaps label -> ProcessMemory field
_SMAPS_FIELDS = {
    "Rss:": "rss",
    "Pss:": "pss",
    "Private_Clean:": "uss",
    "Private_Dirty:": "uss",
    "Swap:": "swap",
}

# meminfo label -> HostMemorySnapshot field
_MEMINFO_FIELDS = {
    "MemTotal:": "total",
    "MemFree:": "free",
    "MemAvailable:": "available",
    "Shmem:": "shared",
    "Buffers:": "buffers",
    "Cached:": "cached",
    "SwapTotal:": "swap_total",
    "SwapFree:": "swap_free",
    "SwapCached:": "swap_cached",
    "Zswapped:": "zswap",
    "Zswap:": "zswap_compressed",
}


@dataclass(slots=True)
class ProcessMemory:
    """Accumulated memory map totals for one process, in kB."""

    rss: int = 0
    pss: int = 0
    uss: int = 0
    swap: int = 0


@dataclass(slots=True, frozen=True)
class ProcessDescriptor:
    """Raw files read for one process."""

    pid: int
    cmdline: bytes
    smaps: str


def _kb(text: str) -> int:
    # Unsigned ASCII decimal only: no sign, no underscores
    if not (text.isascii() and text.isdecimal()):
        raise ValueError(f"not a size in kB: {text!r}")
    return int(text)


def _value(parts: list[str]) -> int:
    # A label without a value counts as zero
    return _kb(parts[1]) if len(parts) > 1 else 0


def parse_smaps(text: str) -> ProcessMemory:
    """
    Sum the memory map report of one process.

    Works on both the rollup and the per-mapping form: every recognized
    line adds to its field, so repeated mapping blocks accumulate.

    Raises:
        ValueError: A recognized label carries a non-numeric value.
    """
    memory = ProcessMemory()
    for line in text.splitlines():
        parts = line.split()
        if not parts:
            continue
        field = _SMAPS_FIELDS.get(parts[0])
        if field is None:
            continue
        setattr(memory, field, getattr(memory, field) + _value(parts))
    return memory


def parse_cmdline(raw: bytes, width: int = COMMAND_WIDTH) -> str:
    """Turn NUL separated arguments into a display string of at most ``width`` characters."""
    text = raw.decode("utf-8", errors="replace").replace("\0", " ").rstrip()
    text = "".join(" " if not ch.isprintable() else ch for ch in text)
    return text[:width]


def parse_meminfo(text: str) -> HostMemorySnapshot:
    """
    Parse /proc/meminfo text in one pass.

    Unknown keys are ignored and missing keys stay at zero.

    Raises:
        MeminfoError: A recognized key has no value or a non-numeric one.
    """
    values: dict[str, int] = {}
    for line in text.splitlines():
        parts = line.split()
        if not parts:
            continue
        field = _MEMINFO_FIELDS.get(parts[0])
        if field is None:
            continue
        try:
            values[field] = _kb(parts[1])
        except (IndexError, ValueError) as e:
            raise MeminfoError(f"malformed meminfo line: {line.strip()!r}") from e
    return HostMemorySnapshot(**values)


def read_meminfo(proc_root: Path = PROC_ROOT) -> HostMemorySnapshot:
    """Read and parse the host memory report."""
    path = proc_root / "meminfo"
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise MeminfoError(f"cannot read {path}: {e.strerror or e}") from e
    except UnicodeDecodeError as e:
        raise MeminfoError(f"cannot decode {path}: {e.reason}") from e
    return parse_meminfo(text)


def smaps_path(pid: int, proc_root: Path = PROC_ROOT, source: SmapsSource = SmapsSource.AUTO) -> Path:
    """Return the memory map file to read for ``pid``."""
    if source is SmapsSource.SMAPS:
        return proc_root / str(pid) / "smaps"
    rollup = proc_root / str(pid) / "smaps_rollup"
    if source is SmapsSource.AUTO and not rollup.exists():
        return proc_root / str(pid) / "smaps"
    return rollup


def read_cmdline(pid: int, proc_root: Path = PROC_ROOT) -> bytes:
    """Read the raw command line of ``pid``."""
    return (proc_root / str(pid) / "cmdline").read_bytes()


def read_smaps(pid: int, proc_root: Path = PROC_ROOT, source: SmapsSource = SmapsSource.AUTO) -> str:
    """Read the memory map report of ``pid``."""
    return smaps_path(pid, proc_root, source).read_text(encoding="utf-8")


def read_descriptor(
    pid: int,
    proc_root: Path = PROC_ROOT,
    source: SmapsSource = SmapsSource.AUTO,
) -> ProcessDescriptor:
    """
    Read the command line and memory map of one process.

    Raises:
        ProcessUnavailable: The process is gone or its files cannot be read.
    """
    try:
        cmdline = read_cmdline(pid, proc_root)
        smaps = read_smaps(pid, proc_root, source)
    except OSError as e:
        raise ProcessUnavailable(pid, e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise ProcessUnavailable(pid, "undecodable memory map") from e
    return ProcessDescriptor(pid=pid, cmdline=cmdline, smaps=smaps)


def is_readable(pid: int, proc_root: Path = PROC_ROOT, source: SmapsSource = SmapsSource.AUTO) -> bool:
    """Cheap check that a process still looks worth scanning."""
    try:
        if not read_cmdline(pid, proc_root):
            return False
        return os.access(smaps_path(pid, proc_root, source), os.R_OK)
    except OSError:
        return False

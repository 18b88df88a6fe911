"""Shared fixtures: a fake process table on disk."""

from pathlib import Path

import pytest

ROLLUP = """\
55d0c9a3f000-7ffd5b1f2000 ---p 00000000 00:00 0                          [rollup]
Rss:                1200 kB
Pss:                 800 kB
Pss_Anon:            300 kB
Shared_Clean:        400 kB
Shared_Dirty:          0 kB
Private_Clean:       500 kB
Private_Dirty:       300 kB
Swap:                 64 kB
SwapPss:              64 kB
"""

MEMINFO = """\
MemTotal:       16000000 kB
MemFree:         4000000 kB
MemAvailable:    9000000 kB
Buffers:          500000 kB
Cached:          3500000 kB
SwapCached:        20000 kB
Shmem:            250000 kB
SwapTotal:       8000000 kB
SwapFree:        6000000 kB
Zswap:            100000 kB
Zswapped:         350000 kB
HugePages_Total:       0
"""


def rollup(rss: int = 0, pss: int = 0, private_clean: int = 0, private_dirty: int = 0, swap: int = 0) -> str:
    return (
        f"Rss: {rss} kB\n"
        f"Pss: {pss} kB\n"
        f"Private_Clean: {private_clean} kB\n"
        f"Private_Dirty: {private_dirty} kB\n"
        f"Swap: {swap} kB\n"
    )


class FakeProc:
    """Builds a /proc lookalike under a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def add_process(
        self,
        pid: int,
        cmdline: bytes = b"/bin/foo\0",
        smaps: str | None = ROLLUP,
        use_rollup: bool = True,
    ) -> Path:
        pid_dir = self.root / str(pid)
        pid_dir.mkdir()
        (pid_dir / "cmdline").write_bytes(cmdline)
        if smaps is not None:
            name = "smaps_rollup" if use_rollup else "smaps"
            (pid_dir / name).write_text(smaps, encoding="utf-8")
        return pid_dir

    def set_meminfo(self, text: str = MEMINFO) -> None:
        (self.root / "meminfo").write_text(text, encoding="utf-8")


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    """An empty fake process table."""
    root = tmp_path / "proc"
    root.mkdir()
    return FakeProc(root)

"""Tests for the zmem snapshot viewer."""

import pytest

from zmem.app import HeaderStats, ProcessTable, SortKey, ZmemApp
from zmem.models import HostMemorySnapshot, MemoryReport, ProcessMemoryRecord, ProcessSnapshot

REPORT = MemoryReport(
    host=HostMemorySnapshot(total=1024 * 1024, free=256 * 1024, swap_total=1024, swap_free=512),
    processes=ProcessSnapshot(
        records=(
            ProcessMemoryRecord(pid=300, command="/bin/small", rss=100, pss=80, uss=60, swap=0),
            ProcessMemoryRecord(pid=200, command="/bin/big", rss=9000, pss=7000, uss=5000, swap=10),
            ProcessMemoryRecord(pid=100, command="/bin/swappy", rss=500, pss=400, uss=300, swap=800),
        )
    ),
)


class TestSortKey:
    """Tests for SortKey enum."""

    def test_sort_key_values(self):
        """Test SortKey enum has expected values."""
        assert [key.value for key in SortKey] == ["swap", "uss", "pss", "rss", "pid"]


@pytest.mark.asyncio
async def test_app_creation():
    """Test ZmemApp can be instantiated."""
    app = ZmemApp(REPORT)
    assert app.title == "zmem"
    assert app.sub_title == "Linux memory snapshot"
    assert app.report is REPORT


@pytest.mark.asyncio
async def test_app_compose():
    """Test ZmemApp composes correctly."""
    app = ZmemApp(REPORT)
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#header-stats", HeaderStats) is not None
        process_table = pilot.app.query_one(ProcessTable)
        assert process_table.row_count == 3


@pytest.mark.asyncio
async def test_app_quit_binding():
    """Test that 'q' binding triggers quit."""
    app = ZmemApp(REPORT)
    async with app.run_test() as pilot:
        await pilot.press("q")
        assert pilot.app._exit


@pytest.mark.asyncio
async def test_app_sort_binding():
    """Test that 's' cycles the sort key."""
    app = ZmemApp(REPORT)
    async with app.run_test() as pilot:
        process_table = pilot.app.query_one(ProcessTable)
        assert process_table.sort_key == SortKey.SWAP

        await pilot.press("s")

        assert process_table.sort_key == SortKey.USS


@pytest.mark.asyncio
async def test_process_table_cycle_sort():
    """Test ProcessTable sort key cycling and ordering."""
    app = ZmemApp(REPORT)
    async with app.run_test() as pilot:
        process_table = pilot.app.query_one(ProcessTable)

        # Default keeps snapshot order
        assert [r.pid for r in process_table.sorted_records()] == [300, 200, 100]

        assert process_table.cycle_sort() == SortKey.USS
        assert [r.pid for r in process_table.sorted_records()] == [200, 100, 300]

        process_table.cycle_sort()
        process_table.cycle_sort()
        assert process_table.cycle_sort() == SortKey.PID
        assert [r.pid for r in process_table.sorted_records()] == [100, 200, 300]

        # Should wrap back to SWAP
        assert process_table.cycle_sort() == SortKey.SWAP
        assert process_table.row_count == 3


@pytest.mark.asyncio
async def test_app_with_failed_snapshots():
    """Test the viewer starts when both snapshots failed."""
    app = ZmemApp(MemoryReport(host_error="cannot read [meminfo]", process_error="cannot list /proc"))
    async with app.run_test() as pilot:
        assert pilot.app.query_one(ProcessTable).row_count == 0


@pytest.mark.asyncio
async def test_header_without_requested_host_snapshot():
    """Test the header is neutral when the host snapshot was not taken."""
    app = ZmemApp(MemoryReport(processes=REPORT.processes))
    async with app.run_test() as pilot:
        header = pilot.app.query_one("#header-stats", HeaderStats)
        text = header._get_mem_info()
        assert "not requested" in text
        assert "unavailable" not in text


@pytest.mark.asyncio
async def test_header_with_host_error():
    """Test the header shows the failure reason."""
    app = ZmemApp(MemoryReport(host_error="cannot read [meminfo]"))
    async with app.run_test() as pilot:
        header = pilot.app.query_one("#header-stats", HeaderStats)
        text = header._get_mem_info()
        assert "unavailable" in text
        assert "meminfo" in text

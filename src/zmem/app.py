"""zmem - Textual snapshot viewer."""

from enum import Enum

from rich.markup import escape
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import DataTable, Footer, Static

from zmem.models import HostMemorySnapshot, MemoryReport, ProcessMemoryRecord
from zmem.report import format_ratio, format_size


class SortKey(Enum):
    """Sort keys for the process table."""

    SWAP = "swap"
    USS = "uss"
    PSS = "pss"
    RSS = "rss"
    PID = "pid"


class HeaderStats(Static):
    """Header widget showing host memory statistics."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 5;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, host: HostMemorySnapshot | None, error: str | None = None, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(**kwargs)
        self._host = host
        self._error = error

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_mem_info(), id="mem-info", markup=True),
            Static(self._get_zswap_info(), id="zswap-info", markup=True),
        )

    def _get_mem_info(self) -> str:
        """Get memory info display."""
        if self._host is None:
            if self._error is None:
                return "[dim]Memory stats not requested[/dim]"
            return f"[red]Memory stats unavailable[/red]\n{escape(self._error)}"

        host = self._host
        mem_bar = self._bar(host.used, host.total, "cyan")
        swap_bar = self._bar(host.swap_used, host.swap_total, "yellow")
        # Use escaped brackets for the bar containers
        return (
            f"Mem\\[{mem_bar}] {format_size(host.used)}/{format_size(host.total)}\n"
            f"Swp\\[{swap_bar}] {format_size(host.swap_used)}/{format_size(host.swap_total)}\n"
            f"Virtual: {format_size(host.virtual_used)}/{format_size(host.virtual_total)}"
        )

    def _get_zswap_info(self) -> str:
        """Get zswap info display."""
        if self._host is None:
            return ""
        host = self._host
        return (
            f"Zswap: {format_size(host.zswap)}\n"
            f"Compressed: {format_size(host.zswap_compressed)}\n"
            f"Ratio: {format_ratio(host.compression_ratio)}"
        )

    @staticmethod
    def _bar(used: int, total: int, color: str) -> str:
        bar_len = min(20, int(20 * used / total)) if total > 0 else 0
        return f"[{color}]█[/{color}]" * bar_len + "[dim]░[/dim]" * (20 - bar_len)


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, records: list[ProcessMemoryRecord], *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._records = records
        self._sort_key: SortKey = SortKey.SWAP

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    @property
    def row_count(self) -> int:
        return self.query_one("#process-table", DataTable).row_count

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key, re-sort the rows and return the key."""
        keys = list(SortKey)
        next_index = (keys.index(self._sort_key) + 1) % len(keys)
        self._sort_key = keys[next_index]
        self._fill()
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=8)
        table.add_column("Swap", key="swap", width=12)
        table.add_column("USS", key="uss", width=12)
        table.add_column("PSS", key="pss", width=12)
        table.add_column("RSS", key="rss", width=12)
        table.add_column("Command", key="command")
        self._fill()

    def sorted_records(self) -> list[ProcessMemoryRecord]:
        """Return the records ordered by the current sort key."""
        if self._sort_key is SortKey.SWAP:
            # Snapshot order
            return list(self._records)
        attr = self._sort_key.value
        return sorted(self._records, key=lambda r: getattr(r, attr), reverse=self._sort_key is not SortKey.PID)

    def _fill(self) -> None:
        table = self.query_one("#process-table", DataTable)
        table.clear()
        for record in self.sorted_records():
            table.add_row(
                str(record.pid),
                format_size(record.swap),
                format_size(record.uss),
                format_size(record.pss),
                format_size(record.rss),
                Text(record.command),
                key=str(record.pid),
            )


class ZmemApp(App):
    """Shows one memory report."""

    TITLE = "zmem"
    SUB_TITLE = "Linux memory snapshot"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
        min-height: 6;
    }

    Horizontal {
        height: auto;
    }

    #mem-info {
        width: 1fr;
        padding-right: 2;
    }

    #zswap-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("s", "sort", "Sort"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(self, report: MemoryReport) -> None:
        """Initialize the ZmemApp."""
        super().__init__()
        self._report = report

    @property
    def report(self) -> MemoryReport:
        return self._report

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(self._report.host, self._report.host_error, id="header-stats")
        records = list(self._report.processes) if self._report.processes is not None else []
        yield ProcessTable(records)
        yield Footer()

    def on_mount(self) -> None:
        if self._report.process_error is not None:
            self.notify(escape(self._report.process_error), title="Process scan failed", severity="error")

    def action_sort(self) -> None:
        """Handle sort action - cycle through sort keys."""
        process_table = self.query_one(ProcessTable)
        new_sort_key = process_table.cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")

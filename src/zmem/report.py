"""Rich rendering of zmem snapshots."""

import math

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from zmem.models import HostMemorySnapshot, MemoryReport, ProcessSnapshot


def format_size(size_kb: int) -> str:
    """Format a size in kB as a human-readable string."""
    size = float(size_kb)
    unit = "kB"
    for next_unit in ["MB", "GB", "TB"]:
        if size <= 1024:
            break
        size /= 1024
        unit = next_unit
    return f"{size:.2f} {unit}"


def format_ratio(ratio: float) -> str:
    return "n/a" if math.isnan(ratio) else f"{ratio:.3f}"


def _mb(size_kb: int) -> str:
    return str(size_kb // 1024)


def render_host(snapshot: HostMemorySnapshot) -> Table:
    """Render host counters in MB, laid out like ``free -m``."""
    table = Table(box=None, pad_edge=False, header_style="bold")
    table.add_column("", style="bold")
    table.add_column("total", justify="right", style="green")
    table.add_column("used", justify="right", style="red")
    table.add_column("free", justify="right", style="cyan")
    table.add_column("shared", justify="right")
    table.add_column("buff/cache", justify="right", style="yellow")
    table.add_column("available", justify="right", style="blue")

    table.add_row(
        Text("Mem:", style="bold cyan"),
        _mb(snapshot.total),
        _mb(snapshot.used),
        _mb(snapshot.free),
        _mb(snapshot.shared),
        _mb(snapshot.buffers + snapshot.cached),
        _mb(snapshot.available),
    )
    table.add_row(
        Text("Swap:", style="bold magenta"),
        _mb(snapshot.swap_total),
        _mb(snapshot.swap_used),
        _mb(snapshot.swap_free),
        "",
        _mb(snapshot.swap_cached),
        _mb(snapshot.swap_available),
    )
    table.add_row(
        Text("Virtual:", style="bold"),
        _mb(snapshot.virtual_total),
        _mb(snapshot.virtual_used),
        _mb(snapshot.virtual_free),
        "",
        "",
        _mb(snapshot.virtual_available),
    )
    return table


def render_zswap(snapshot: HostMemorySnapshot) -> Table:
    """Render zswap pool usage and its compression ratio."""
    table = Table(box=None, pad_edge=False, header_style="bold")
    table.add_column("", style="bold magenta")
    table.add_column("Zswap", justify="right")
    table.add_column("Compressed", justify="right")
    table.add_column("Ratio", justify="right")
    table.add_row(
        "Zswap:",
        _mb(snapshot.zswap),
        _mb(snapshot.zswap_compressed),
        format_ratio(snapshot.compression_ratio),
    )
    return table


def render_processes(snapshot: ProcessSnapshot) -> Table:
    """Render one row per process, in snapshot order."""
    table = Table(box=None, pad_edge=False, header_style="bold", show_footer=len(snapshot) > 1)
    table.add_column("PID", justify="right", footer="Total")
    table.add_column("Swap", justify="right", style="red", footer=format_size(snapshot.total_swap))
    table.add_column("USS", justify="right", style="green", footer=format_size(snapshot.total_uss))
    table.add_column("PSS", justify="right", style="blue", footer=format_size(snapshot.total_pss))
    table.add_column("RSS", justify="right", style="cyan", footer=format_size(snapshot.total_rss))
    table.add_column("COMMAND", no_wrap=True, overflow="ellipsis")

    for record in snapshot:
        table.add_row(
            str(record.pid),
            format_size(record.swap),
            format_size(record.uss),
            format_size(record.pss),
            format_size(record.rss),
            Text(record.command),
        )
    return table


def print_report(report: MemoryReport, console: Console) -> None:
    """Print every snapshot in the report, and each failure once."""
    if report.host is not None:
        console.print(render_host(report.host))
        console.print()
        console.print(render_zswap(report.host))
    if report.host_error is not None:
        console.print(f"[bold red]error updating memory stats:[/bold red] {escape(report.host_error)}")

    if report.processes is not None:
        console.print()
        console.print(render_processes(report.processes))
    if report.process_error is not None:
        console.print(f"[bold red]error updating processes:[/bold red] {escape(report.process_error)}")

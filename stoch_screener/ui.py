"""Terminal UI components using rich library"""

from typing import Any, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeRemainingColumn
from rich.table import Table
from rich.text import Text

from .models import ScanMode, ScanReport, Signal

console = Console()


def print_header(title: str, subtitle: str = "") -> None:
    """Print a header banner"""
    text = Text(title, style="bold cyan", justify="center")
    if subtitle:
        text.append("\n" + subtitle, style="dim")

    console.print(Panel(text, border_style="bright_blue", padding=(1, 2)))


def print_success(message: str) -> None:
    console.print(f"[bold green]✓[/bold green] {message}")


def print_error(message: str) -> None:
    console.print(f"[bold red]✗[/bold red] {message}")


def print_warning(message: str) -> None:
    console.print(f"[bold yellow]⚠[/bold yellow]  {message}")


def print_info(message: str) -> None:
    console.print(f"[bold blue]ℹ[/bold blue]  {message}")


def create_scan_progress() -> Progress:
    """Progress bar driven by the screener's (processed, total) callbacks"""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(complete_style="green", finished_style="bold green"),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TextColumn("•"),
        TextColumn("[cyan]{task.completed}/{task.total}[/cyan]"),
        TimeRemainingColumn(),
        console=console,
        expand=True
    )


def create_results_table(report: ScanReport) -> Table:
    """Table of the rows shown in a report"""
    momentum = report.mode == ScanMode.MOMENTUM
    table = Table(
        title="🚀 Momentum Leaders" if momentum else "🎯 Stochastic Signals",
        title_style="bold green",
        show_header=True,
        header_style="bold magenta",
        border_style="green",
    )

    table.add_column("#", style="dim", width=4, justify="right")
    table.add_column("Symbol", style="bold cyan", width=8)
    table.add_column("Price", style="white", justify="right")
    table.add_column("K", style="blue", justify="right")
    table.add_column("D", style="blue", justify="right")
    if momentum:
        table.add_column("1D %", style="yellow", justify="right")
        table.add_column("5D %", style="yellow", justify="right")
    else:
        table.add_column("Vol/Avg", style="yellow", justify="right")
        table.add_column("Signal", width=10)

    for idx, r in enumerate(report.results, 1):
        row = [str(idx), r.symbol, f"{r.price:,.0f}", f"{r.k:.1f}", f"{r.d:.1f}"]
        if momentum:
            row += [f"{r.momentum.change_1d:+.1f}", f"{r.momentum.momentum_5d:+.1f}"]
        else:
            signal = "[bold green]BUY[/bold green]" if r.signal == Signal.BUY else "[yellow]POTENTIAL[/yellow]"
            row += [f"{(r.volume_ratio or 0):.2f}x", signal]
        table.add_row(*row)

    return table


def create_sectors_table(sectors: Dict[str, List[str]]) -> Table:
    table = Table(title="🏢 IDX Sectors", header_style="bold magenta", border_style="blue")
    table.add_column("Sector", style="bold cyan")
    table.add_column("Symbols", justify="right", style="green")
    for name, symbols in sectors.items():
        table.add_row(name, str(len(symbols)))
    return table


def print_stats_panel(stats: Dict[str, Any], title: str = "📊 Statistics") -> None:
    """Print statistics in a panel"""
    content = []

    for key, value in stats.items():
        formatted_key = key.replace('_', ' ').title()

        if isinstance(value, float):
            formatted_value = f"{value:.2f}"
        elif isinstance(value, dict):
            formatted_value = ", ".join(f"{k}: {v}" for k, v in value.items())
        elif value is None:
            formatted_value = "-"
        else:
            formatted_value = str(value)

        content.append(f"[bold cyan]{formatted_key}:[/bold cyan] {formatted_value}")

    console.print(Panel(
        "\n".join(content),
        title=title,
        title_align="left",
        border_style="yellow",
        padding=(1, 2)
    ))


def print_report_summary(report: ScanReport) -> None:
    print_stats_panel(
        {
            "mode": report.mode.value,
            "screened": report.screened,
            "with_signal": report.with_signal,
            "errors": report.errors,
            "generated_at": report.generated_at.strftime("%Y-%m-%d %H:%M"),
        },
        title=f"📊 {report.title}",
    )

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from benefits.domain.models import BenefitRecord, TransferReceipt


def print_records(records: Sequence[BenefitRecord], console: Optional[Console] = None) -> None:
    """Render benefit records as a rich table, ordered as given."""
    console = console or Console()

    if not records:
        console.print("[yellow]No benefits stored.[/yellow]")
        return

    table = Table(title="Benefits", box=box.ROUNDED)
    table.add_column("ID", justify="right", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Description")
    table.add_column("Value", justify="right", style="bold green")
    table.add_column("Active", justify="center")
    table.add_column("Version", justify="right", style="dim")

    for record in records:
        table.add_row(
            str(record.id),
            record.name,
            record.description or "",
            f"{record.value:,.2f}",
            "[green]yes[/green]" if record.active else "[red]no[/red]",
            str(record.version),
        )

    console.print(table)


def print_receipt(receipt: TransferReceipt, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print(
        f"[bold green]Transferred {receipt.amount:,.2f}[/bold green] "
        f"from #{receipt.source.id} (now {receipt.source.value:,.2f}) "
        f"to #{receipt.target.id} (now {receipt.target.value:,.2f}) "
        f"[dim]in {receipt.attempts} attempt(s)[/dim]"
    )


def print_stress_report(report: Dict[str, Any], console: Optional[Console] = None) -> None:
    """
    Render a stress report: one row per outcome kind, then the invariant checks.
    """
    console = console or Console()

    title = (
        f"Stress run on '{report.get('store', 'unknown')}'\n"
        f"[dim]{report.get('transfers', 0):,} transfers │ {report.get('records', 0)} records │ "
        f"{report.get('workers', 0)} workers │ max attempts {report.get('max_attempts', '?')}[/dim]"
    )
    table = Table(title=title, box=box.ROUNDED, caption="Outcomes sorted by count (descending)")
    table.add_column("Outcome", style="cyan", no_wrap=True)
    table.add_column("Count", justify="right", style="magenta")
    table.add_column("Share", justify="right", style="green")

    total = report.get("transfers", 0) or 1
    outcomes = sorted(report.get("outcomes", {}).items(), key=lambda item: item[1], reverse=True)
    for kind, count in outcomes:
        table.add_row(kind, f"{count:,}", f"{100 * count / total:.1f}%")

    console.print(table)

    def _flag(ok: bool) -> str:
        return "[green]OK[/green]" if ok else "[bold red]VIOLATED[/bold red]"

    profile = report.get("profile") or {}
    mem_mb = (profile.get("peak_rss_bytes") or 0) / (1024 * 1024)
    console.print(
        f"Conservation: {_flag(report.get('conservation_ok', False))} "
        f"({report.get('total_before')} → {report.get('total_after')}) │ "
        f"Non-negative: {_flag(report.get('no_negative_balance', False))} │ "
        f"Retries: {report.get('retries', 0):,}"
    )
    console.print(
        f"[dim]Duration {report.get('duration_seconds', 0.0):.2f}s │ "
        f"{report.get('transfers_per_sec', 0.0):,.2f} transfers/s │ "
        f"peak RSS {mem_mb:.2f} MB │ CPU {profile.get('cpu_percent') or 0.0:.1f}%[/dim]"
    )


__all__ = ["print_receipt", "print_records", "print_stress_report"]

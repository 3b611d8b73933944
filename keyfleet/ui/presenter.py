"""
Terminal presentation for keyfleet
"""
import json
from typing import List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from keyfleet.core.statistics import AggregateReport
from keyfleet.provider.base import FleetNode
from keyfleet.schemas import Job

console = Console()


class FleetPresenter:
    def __init__(self, output: Optional[Console] = None):
        self.console = output if output is not None else console

    def show_plan(self, action: str, names: Sequence[str]):
        """Describe a batch before the confirmation gate"""
        header = Text()
        header.append("⚡ ", style="bold yellow")
        header.append(action, style="bold white")
        self.console.print(header)
        if names:
            self.console.print(Text(", ".join(names), style="dim white"))

    def show_no_nodes(self, tag: str):
        self.console.print(f"[yellow]No nodes tagged[/yellow] [bold]{tag}[/bold]")

    def show_spawned(self, nodes: List[FleetNode]):
        self.console.print(f"✅ [green]Spawned {len(nodes)} nodes[/green]")
        for node in nodes:
            self.console.print(f"   [dim]{node.id}[/dim] {node.name}")

    def show_destroyed(self, count: int):
        self.console.print(f"🗑️  [green]Deleted {count} nodes[/green]")

    def show_scheduled(self, jobs: List[Job]):
        self.console.print(f"✅ [green]Scheduled {len(jobs)} jobs[/green]")
        for job in jobs:
            email = f" → {job.config.email}" if job.config.email else ""
            self.console.print(f"   [dim]{job.id}[/dim] {job.config.prefix}{email} [{job.status.value}]")

    def show_report(self, report: AggregateReport):
        """Render the aggregate status report"""
        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="bold cyan", justify="right")
        grid.add_column()

        status = ", ".join(f"{state.value}: {count}" for state, count in report.tally.items())
        grid.add_row("Nodes", f"{report.nodes_answered}/{report.nodes_polled} answered")
        grid.add_row("Status", status)
        grid.add_row("Results", Text(json.dumps(report.results)))
        grid.add_row("Tried", f"{report.total:,} keys")
        grid.add_row("Speed", f"{report.speed:,.0f} keys/sec")
        grid.add_row("Keyspace", f"2^{report.bit_length}")
        grid.add_row("Probability", f"{report.probability * 100:.2f}%")

        eta = report.eta
        if eta is None:
            grid.add_row("Eta", Text("unknown (no running jobs)", style="yellow"))
        else:
            grid.add_row("Eta", eta.format())

        border = "green" if report.results else "blue"
        self.console.print(Panel(grid, title=f"Prefix {report.prefix}", border_style=border, padding=(1, 2)))

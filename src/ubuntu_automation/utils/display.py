"""
Display utilities for CLI
Handles tables, progress spinners and formatted output
"""

from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn
from typing import Dict

console = Console()


def show_banner():
    """Show CLI banner"""
    console.print("""
╔══════════════════════════════════════════╗
║   🛠  Ubuntu Automation Tools             ║
║   Provision servers in one command       ║
╚══════════════════════════════════════════╝
""")


def show_quick_help():
    """Show quick command reference"""
    console.print("""
[cyan]Quick Commands:[/cyan]
  ubuntu-automation base install                 Base packages
  ubuntu-automation docker install               Docker Engine
  ubuntu-automation portainer install            Portainer CE
  ubuntu-automation nginx install ...            Nginx default site
  ubuntu-automation nginx vhost-proxy ...        Reverse-proxy vhost
  ubuntu-automation mariadb install ...          MariaDB server
  ubuntu-automation mariadb create-user ...      Database user
  ubuntu-automation --help                       Full help
""")


def create_progress_context(description: str = "Processing..."):
    """Create a progress context manager"""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True
    )


def show_info_table(data: Dict[str, str], title: str = "Information"):
    """Show information in a table format"""
    table = Table(show_header=False, box=None)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(f"\n[cyan bold]{title}[/cyan bold]\n")
    console.print(table)
    console.print()

from rich.table import Table
from rich.console import Console

def print_archive_table(archive_rows):
    """
    Print a table of archived log files using rich.
    archive_rows: list of dicts with keys: archive, period, size, status
    """
    console = Console()
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ARCHIVE", style="bold", overflow="fold")
    table.add_column("PERIOD", style="dim", justify="center")
    table.add_column("SIZE", style="", justify="right")
    table.add_column("STATUS", style="bold", justify="center")

    for row in archive_rows:
        status_style = {
            "active": "green",
            "kept": "green",
            "prune": "red",
        }.get(row["status"].lower(), "yellow")
        table.add_row(
            row["archive"],
            row["period"],
            str(row["size"]),
            f"[{status_style}]{row['status']}[/{status_style}]",
        )
    console.print(table)

def print_schedule_table(schedule_rows):
    """
    Print period boundaries using rich.
    schedule_rows: list of dicts with keys: label, timestamp, suffix
    """
    console = Console()
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("BOUNDARY", style="bold", overflow="fold")
    table.add_column("TIMESTAMP", style="", justify="center")
    table.add_column("SUFFIX", style="dim", overflow="fold")

    for row in schedule_rows:
        table.add_row(row["label"], row["timestamp"], row["suffix"])
    console.print(table)

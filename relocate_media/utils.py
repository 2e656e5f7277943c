"""
Utility functions for the Media Relocation Tool.

Includes:
- Size parsing/formatting helpers
- JSON report saving
- UI helpers
"""

import json
import re
from pathlib import Path
from typing import Any
from rich.console import Console
from rich.table import Table
from rich.tree import Tree
from rich.panel import Panel

from .errors import InvalidSizeError

# Global console instance
console = Console()

def print_header(title: str, subtitle: str = ""):
    """Print a styled header."""
    console.print(Panel(f"[bold blue]{title}[/bold blue]\n[italic]{subtitle}[/italic]", expand=False))

def print_outcome_table(outcome) -> None:
    """Print a summary table of a scatter or gather outcome."""
    title = f"{outcome.operation.capitalize()} Summary"
    if outcome.dry_run:
        title += " (dry-run)"

    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="magenta")

    table.add_row("Files moved", str(outcome.files_moved))
    table.add_row("Folders created", str(outcome.folders_created))
    table.add_row("Files skipped", str(outcome.files_skipped))
    table.add_row("Files failed", str(outcome.files_failed))

    console.print(table)

    if outcome.moves:
        tree = Tree("[bold green]Sample Moves[/bold green]")
        for move in outcome.moves[:10]:
            tree.add(f"[yellow]{move['old']}[/yellow] -> [blue]{move['new']}[/blue]")
        if len(outcome.moves) > 10:
            tree.add(f"[italic]... and {len(outcome.moves)-10} more[/italic]")
        console.print(tree)

def print_error(msg: str):
    console.print(f"[bold red]ERROR:[/bold red] {msg}")

def print_warning(msg: str):
    console.print(f"[bold yellow]WARNING:[/bold yellow] {msg}")

def print_success(msg: str):
    console.print(f"[bold green]SUCCESS:[/bold green] {msg}")


# -----------------------------------------------------------------------------
# Sizes
# -----------------------------------------------------------------------------

SIZE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024, "kb": 1024, "kib": 1024,
    "m": 1024 ** 2, "mb": 1024 ** 2, "mib": 1024 ** 2,
    "g": 1024 ** 3, "gb": 1024 ** 3, "gib": 1024 ** 3,
    "t": 1024 ** 4, "tb": 1024 ** 4, "tib": 1024 ** 4,
}

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]*)\s*$")


def parse_size(text: str | int | None) -> int | None:
    """
    Parse a size such as ``"5MB"``, ``"512k"`` or ``"1048576"`` into bytes.

    Units are binary (1 KB = 1024 bytes). Blank input means "no bound".

    Raises:
        InvalidSizeError: If the text is not a size.
    """
    if text is None:
        return None
    if isinstance(text, int):
        return text
    if not text.strip():
        return None

    match = _SIZE_RE.match(text)
    if not match:
        raise InvalidSizeError(f"Invalid size: {text!r}")

    number, unit = match.groups()
    unit = unit.lower()
    if unit not in SIZE_UNITS:
        raise InvalidSizeError(f"Unknown size unit {unit!r} in {text!r}")
    return int(float(number) * SIZE_UNITS[unit])


def human_size(n: int) -> str:
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if n < 1024:
            return f"{n:.1f}{unit}"
        n /= 1024
    return f"{n:.1f}PB"


def save_json(data: Any, path: Path) -> None:
    """
    Save data to a JSON file with pretty formatting.

    Args:
        data: The data to serialize.
        path: The output file path.
    """
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    print(f"[INFO] Saved: {path}")

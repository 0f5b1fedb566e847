"""
Rich Terminal UI components.
Status lines, panels, tables and spinners with an ASCII fallback.
"""
import sys
from contextlib import contextmanager
from typing import Dict, Generator

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.status import Status
from rich.table import Table
from rich.text import Text

# Detect ASCII fallback
try:
    "🔐".encode(sys.stdout.encoding if sys.stdout and sys.stdout.encoding else "utf-8")
    HAS_UNICODE = True
except (UnicodeEncodeError, LookupError):
    HAS_UNICODE = False

ICONS: Dict[str, str] = {
    "export": "📦",
    "import": "📥",
    "encrypt": "🔐",
    "verify": "🧪",
    "success": "✅",
    "error": "❌",
    "warn": "⚠️",
    "info": "ℹ️",
    "doctor": "🩺",
}

ASCII_ICONS: Dict[str, str] = {
    "export": "[EXP]",
    "import": "[IMP]",
    "encrypt": "[SEC]",
    "verify": "[CHK]",
    "success": "[OK]",
    "error": "[ERR]",
    "warn": "[WARN]",
    "info": "[INF]",
    "doctor": "[DOC]",
}

def icon(name: str) -> str:
    return ICONS.get(name, "") if HAS_UNICODE else ASCII_ICONS.get(name, "")

console = Console(width=120)
err_console = Console(stderr=True, width=120)

def render_banner() -> None:
    """Render the compact Tyr backup banner."""
    banner_text = Text("TYR BACKUP", style="bold color(39)")
    banner_text.append("\nENCRYPTION: AES-256-GCM | KDF: PBKDF2-HMAC-SHA256", style="dim magenta")
    console.print(Panel(banner_text, border_style="cyan", expand=False))

def render_status(action: str, message: str, style: str = "white") -> None:
    """Print a single line status update."""
    i = icon(action)
    console.print(f"{i} [{style}]{message}[/]")

def render_error(message: str) -> None:
    """Print a styled error panel."""
    i = icon("error")
    err_console.print()
    err_console.print(Panel(Text(message, style="red"), border_style="red", expand=False, title=f"{i} ERROR"))

def confirm(prompt_text: str) -> bool:
    """Interactive confirmation prompt."""
    i = icon("warn")
    return typer.confirm(f"{i} {prompt_text}", default=False)

def render_table(title: str, headers: list[str], rows: list[list[str]]) -> None:
    """Render a structured Rich Table."""
    console.print()
    table = Table(
        title=title,
        border_style="cyan",
        header_style="bold magenta",
        show_lines=True,
        box=box.ROUNDED if HAS_UNICODE else box.ASCII
    )

    if headers:
        table.add_column(headers[0], justify="left", no_wrap=True)
        for h in headers[1:]:
            table.add_column(h, justify="left", overflow="fold")

    for r in rows:
        table.add_row(*r)

    console.print(table)
    console.print()

@contextmanager
def render_progress(title: str = "Operation in progress...") -> Generator[Status, None, None]:
    """Spinner shown while a slow, unmeasurable step (key derivation) runs."""
    with console.status(f"[bold cyan]{title}", spinner="dots2") as status:
        yield status

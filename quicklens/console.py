"""
Centralized Rich Console Configuration

Two user-facing channels live here:
- show_message(): the lightweight inline message channel (errors, notices)
- print_response(): the plain-text surface used when no overlay is available
"""

from rich.console import Console
from rich.theme import Theme

custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "highlight": "magenta",
    "dim": "dim white",
    "key": "bold cyan",
    "value": "yellow",
    "panel.border": "blue",
})

console = Console(theme=custom_theme)


def print_error(msg):
    console.print(f"[error]❌ {msg}[/error]")


def print_warning(msg):
    console.print(f"[warning]⚠️  {msg}[/warning]")


def print_info(msg):
    console.print(f"[info]ℹ️  {msg}[/info]")


def show_message(msg, level="info"):
    """Inline message channel. Never used for successful responses."""
    if level == "error":
        print_error(msg)
    elif level == "warning":
        print_warning(msg)
    else:
        print_info(msg)


def print_response(text: str):
    """Plain-text response surface. Prints the response verbatim."""
    console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)

#!/usr/bin/env python3
"""
QuickLens - point-and-query explanations
Main entry point

Usage:
    python main.py                        # Hotkey + popup + local HTTP endpoint
    python main.py --no-server            # Hotkey + popup only
    python main.py --query "idempotent"   # One lookup, printed to the terminal
"""

import argparse
import logging
import signal
import socket
import sys
import threading
from pathlib import Path

from rich.panel import Panel
from rich.table import Table

from quicklens import web_server
from quicklens.app import QuickLensApp, build_desktop_app
from quicklens.config import CONFIG_FILE, PROVIDERS, generate_example_config, load_config
from quicklens.console import console, print_error
from quicklens.errors import ConfigurationError
from quicklens.loop import BlockingHostLoop

QUICKLENS_APP = None
SHUTDOWN = threading.Event()


def print_banner(config, keys):
    """Startup banner with the configuration summary"""
    console.print()
    console.print(Panel.fit(
        "[bold cyan]🔎 QuickLens[/bold cyan]\n[dim]Point-and-query explanations[/dim]",
        border_style="cyan"
    ))
    console.print()

    provider = config.get('default_provider', 'google')
    backend = config.get('backend_override') or provider
    model = config.get('model_override') or config.get(f'{backend}_model', 'not set')

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="dim")
    table.add_column("Value")
    table.add_row("📡 Provider", f"[cyan]{backend}[/cyan]")
    table.add_row("🤖 Model", f"[green]{model}[/green]")
    table.add_row("📝 Words", str(config.get('word_count')))
    table.add_row("⌨️  Hotkey", f"[cyan]{config.get('hotkey')}[/cyan]")
    context_icon = "[green]✓[/green]" if config.get('use_context') else "[red]✗[/red]"
    table.add_row("📎 Context", context_icon)

    console.print("[bold]⚙️  Configuration[/bold]")
    console.print(table)
    console.print()

    key_parts = []
    for p in PROVIDERS:
        count = len(keys[p])
        if count > 0:
            marker = " ◄" if p == backend else ""
            key_parts.append(f"[green]✓[/green] {p} ({count}){marker}")
        else:
            key_parts.append(f"[red]✗[/red] {p}")
    console.print(f"[bold]🔑 API Keys[/bold]  {'  '.join(key_parts)}")
    console.print()


def cleanup():
    """Cleanup on shutdown"""
    global QUICKLENS_APP

    if QUICKLENS_APP:
        QUICKLENS_APP.stop()
        QUICKLENS_APP = None

        from quicklens.gui import shutdown_tkinter
        shutdown_tkinter()


def signal_handler(signum, frame):
    """Handle interrupt signals"""
    console.print("\n\nShutdown signal received...")
    cleanup()
    SHUTDOWN.set()
    sys.exit(0)


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="QuickLens - point-and-query explanations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                          Hotkey, popups and HTTP endpoint
  python main.py --no-server              Hotkey and popups only
  python main.py --query "monad" -w 30    Look up once and print the answer
        """
    )
    parser.add_argument('-q', '--query', help='Look up TEXT once and print the response')
    parser.add_argument('-w', '--words', type=int, help='Response length in words')
    parser.add_argument('--no-server', action='store_true', help='Do not start the HTTP endpoint')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    return parser.parse_args(argv)


def check_port_available(host: str, port: int) -> bool:
    """
    Check if a port is available for binding.
    Returns True if available, False if already in use.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.settimeout(1)
    try:
        sock.bind((host, port))
        sock.close()
        return True
    except OSError:
        return False


def run_query(config, ai_params, keys, text, words) -> int:
    """Run a single lookup without the GUI. Returns the exit code."""
    loop = BlockingHostLoop()
    quicklens = QuickLensApp(config, ai_params, keys, loop)

    try:
        query = quicklens.quick(source_text=text, word_count=words)
    except ConfigurationError as e:
        print_error(str(e))
        return 2
    if query is None:
        return 1

    attempts = int(config.get('max_retries', 2)) + 1
    timeout = (float(config.get('request_timeout', 60)) + float(config.get('retry_delay', 2))) * attempts
    with console.status("[dim]Generating...[/dim]"):
        done = loop.run_until(lambda: quicklens.completed > 0, timeout)

    if not done:
        print_error(f"No response after {timeout:.0f}s")
        return 1
    return 0 if quicklens.last_result_ok else 1


def run_server(config):
    """Run the Flask server"""
    host = config.get('host', '127.0.0.1')
    port = int(config.get('port', 5055))
    web_server.app.run(host=host, port=port, use_reloader=False, threaded=True)


def main(argv=None):
    """Main entry point"""
    global QUICKLENS_APP

    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='%(asctime)s %(levelname)s %(message)s'
    )
    # Suppress Flask/werkzeug logging (only show errors)
    logging.getLogger('werkzeug').setLevel(logging.ERROR)

    import flask.cli
    flask.cli.show_server_banner = lambda *args: None

    # Create example config if needed
    if not Path(CONFIG_FILE).exists():
        console.print(f"[yellow]Config file '{CONFIG_FILE}' not found.[/yellow]")
        with open(CONFIG_FILE, 'w', encoding='utf-8') as f:
            f.write(generate_example_config())
        console.print(f"[green]✅ Created '{CONFIG_FILE}'[/green]")
        console.print("\nPlease edit the config file to add your API keys, then restart.")
        return 0

    config, ai_params, keys = load_config()

    if args.query is not None:
        return run_query(config, ai_params, keys, args.query, args.words)

    print_banner(config, keys)
    if not any(keys.values()):
        console.print("[bold yellow]⚠️  WARNING: No API keys configured![/bold yellow]")
        console.print(f"   Please add your API keys to [cyan]{CONFIG_FILE}[/cyan]")
        console.print()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    QUICKLENS_APP = build_desktop_app(config, ai_params, keys)
    if QUICKLENS_APP is None:
        print_error("Could not start the GUI. Use --query for terminal lookups.")
        return 1
    QUICKLENS_APP.start()
    console.print(f"[bold green]⌨️  Hotkey[/bold green]  {config.get('hotkey')}")

    serve = config.get('server_enabled', True) and not args.no_server
    if serve:
        host = config.get('host', '127.0.0.1')
        port = int(config.get('port', 5055))
        if not check_port_available(host, port):
            print_error(f"Port {port} is already in use! Another instance may be running.")
            cleanup()
            return 1
        web_server.init_web_server(QUICKLENS_APP)
        console.print(f"[bold green]🚀 Server[/bold green]  http://{host}:{port}  [dim]POST /quick[/dim]")
        console.print()
        try:
            run_server(config)
        finally:
            cleanup()
    else:
        console.print("[dim]📟 HTTP endpoint disabled[/dim]")
        console.print()
        SHUTDOWN.wait()
    return 0


if __name__ == '__main__':
    sys.exit(main())

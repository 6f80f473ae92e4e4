#!/usr/bin/env python3
# versefeed/cli.py
"""
versefeed: command line entry point.

Usage:
    # Run the HTTP API (proxies API.Bible)
    versefeed serve

    # Browse the feed in the terminal against a running API
    versefeed browse --api-url http://127.0.0.1:5055/api

    # Show or export liked verses
    versefeed likes
    versefeed likes --export my-liked-verses.txt
"""

import argparse
import readline  # noqa: F401  Enables command history in input()
import sys
import textwrap
from pathlib import Path

from versefeed.core import config


def print_header():
    """Print the CLI header."""
    print()
    print("╔════════════════════════════════════════════════════════════╗")
    print("║                        versefeed                           ║")
    print("║                 One verse at a time                        ║")
    print("╚════════════════════════════════════════════════════════════╝")
    print()


def print_help():
    """Print interactive mode help."""
    print("""
Commands:
  n, <enter>   - Next verse
  p            - Previous verse
  l            - Like / unlike the current verse
  e            - List editions
  e <ID>       - Switch edition
  likes        - Show liked verses
  export PATH  - Save liked verses to a text file
  help         - Show this help
  q            - Exit
""")


def render(feed) -> None:
    """Print the current verse card."""
    view = feed.view()
    verse = view.current_verse
    if verse is None:
        print("(no verses yet)")
        return

    heart = "♥" if feed.is_liked(verse.id) else "♡"
    edition = (feed.edition.abbreviation or feed.edition.name) if feed.edition else "offline"

    print()
    print("┌" + "─" * 58 + "┐")
    for line in textwrap.wrap(verse.text, 56) or [""]:
        print(f"│ {line:<56} │")
    print("│" + " " * 58 + "│")
    print(f"│ {('— ' + verse.reference):<56} │")
    print("└" + "─" * 58 + "┘")
    nav = f"{'◀' if view.can_go_back else ' '} {view.position}/{view.total} {'▶' if view.can_go_forward else ' '}"
    print(f"  {heart}  {nav}  [{edition}]{'  loading…' if view.loading else ''}")
    if verse.copyright:
        print(f"  {verse.copyright}")


def print_editions(feed) -> None:
    current = feed.edition.id if feed.edition else None
    for edition in feed.editions:
        marker = "*" if edition.id == current else " "
        print(f" {marker} {edition.id:<24} {edition.abbreviation:<8} {edition.name}")


def print_likes(feed) -> None:
    liked = feed.liked_verses()
    if not liked:
        print("No liked verses yet.")
        return
    for verse in liked:
        print(f"{verse['reference']}")
        print(textwrap.fill(verse["text"], 70, initial_indent="  ", subsequent_indent="  "))
        print()


def export_likes(feed, path: str) -> int:
    """Write liked verses to a text file. Returns how many were written."""
    liked = feed.liked_verses()
    Path(path).write_text(feed.export_likes(), encoding="utf-8")
    return len(liked)


def run_browse(feed) -> None:
    """Run the interactive feed loop."""
    print_header()
    print("Loading…")
    feed.start()
    print_help()
    render(feed)

    while True:
        try:
            command = input("\n► ").strip()
        except EOFError:
            break
        except KeyboardInterrupt:
            print()
            continue

        cmd, _, arg = command.partition(" ")
        cmd = cmd.lower()

        if cmd in ("q", "quit", "exit"):
            break
        elif cmd in ("", "n", "next"):
            feed.advance()
        elif cmd in ("p", "prev", "previous"):
            feed.retreat()
        elif cmd in ("l", "like"):
            verse = feed.current_verse
            if verse is not None:
                feed.toggle_like(verse.id)
        elif cmd in ("e", "edition", "editions"):
            if arg:
                if not feed.select_edition(arg.strip()):
                    print(f"Unknown edition: {arg}")
                    continue
            else:
                print_editions(feed)
                continue
        elif cmd == "likes":
            print_likes(feed)
            continue
        elif cmd == "export":
            if not arg:
                print("Usage: export PATH")
                continue
            count = export_likes(feed, arg.strip())
            print(f"Saved {count} verse(s) to {arg.strip()}")
            continue
        elif cmd == "help":
            print_help()
            continue
        else:
            print(f"Unknown command: {command}")
            print("Type help for available commands.")
            continue

        render(feed)

    print("Goodbye!")


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="versefeed",
        description="versefeed: an endless feed of Bible verses",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s serve                          # Run the HTTP API
  %(prog)s browse                         # Browse the feed interactively
  %(prog)s likes --export liked.txt       # Export liked verses
""",
    )
    parser.add_argument(
        "--log-level",
        default=config.LOG_LEVEL,
        help=f"Logging level (default: {config.LOG_LEVEL})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=config.HOST, help=f"Bind address (default: {config.HOST})")
    serve.add_argument("--port", type=int, default=config.PORT, help=f"Port (default: {config.PORT})")

    for name, help_text in (("browse", "Browse the feed interactively"), ("likes", "Show liked verses")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--api-url",
            default=config.VERSEFEED_API_URL,
            help=f"versefeed API base URL (default: {config.VERSEFEED_API_URL})",
        )
        sub.add_argument(
            "--data-dir",
            metavar="DIR",
            default=config.VERSEFEED_DATA_DIR,
            help=f"Where likes and the selected edition are kept (default: {config.VERSEFEED_DATA_DIR})",
        )
        if name == "likes":
            sub.add_argument("--export", metavar="PATH", help="Write liked verses to a text file")

    args = parser.parse_args(argv)
    config.configure_logging(args.log_level.upper())

    if args.command == "serve":
        from versefeed.server import create_app

        if not config.BIBLE_API_KEY:
            print("Warning: BIBLE_API_KEY not set; every request will use fallback verses.", file=sys.stderr)
        create_app().run(host=args.host, port=args.port)
        return 0

    from versefeed.services.feed import build_feed

    feed = build_feed(args.api_url, args.data_dir)

    if args.command == "browse":
        try:
            run_browse(feed)
        except KeyboardInterrupt:
            print("\nGoodbye!")
        return 0

    if args.export:
        count = export_likes(feed, args.export)
        print(f"Saved {count} verse(s) to {args.export}")
    else:
        print_likes(feed)
    return 0


if __name__ == "__main__":
    sys.exit(main())

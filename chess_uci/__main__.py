"""
Probe a UCI engine: run the handshake and print what it declares.

Usage:
    python -m chess_uci [ENGINE] [--debug]
"""

import argparse
import logging
import sys

from chess_uci.client.config import ClientConfig
from chess_uci.client.session import UCISession
from chess_uci.errors import UCIError


def describe_option(option) -> str:
    """One human-readable line per option."""
    text = f"  {option.name} ({option.type.value})"
    if option.default:
        text += f" default={option.default}"
    if option.min is not None or option.max is not None:
        text += f" range={option.min}..{option.max}"
    if option.vars:
        text += f" choices={'/'.join(option.vars)}"
    return text


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Probe a UCI chess engine")
    parser.add_argument("engine", nargs="?", help="Path to the engine (default: auto-detect)")
    parser.add_argument("--debug", action="store_true", help="Log the protocol to stderr")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        with UCISession.open(ClientConfig(engine_path=args.engine)) as session:
            print(f"Name:   {session.name}")
            print(f"Author: {session.author}")
            print(f"Options ({len(session.options)}):")
            for option in session.options:
                print(describe_option(option))
    except (UCIError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

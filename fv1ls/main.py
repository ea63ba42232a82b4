"""
Main entry point for the FV-1 Assembly Language Server.

This file is executed when running: python -m fv1ls

The server communicates with editors via stdin/stdout using JSON-RPC,
or over TCP when started with --tcp.
"""
import argparse
import os
import sys

from fv1ls.lsp.server import SERVER_VERSION, create_server


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fv1ls",
        description="Language server for Spin Semiconductor FV-1 assembly",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {SERVER_VERSION}")

    transport = parser.add_mutually_exclusive_group()
    transport.add_argument(
        "--stdio", action="store_true", help="Communicate over stdin/stdout (default)"
    )
    transport.add_argument(
        "--tcp", action="store_true", help="Listen for a client on a TCP socket"
    )

    parser.add_argument("--host", default="127.0.0.1", help="TCP host (default: %(default)s)")
    parser.add_argument("--port", type=int, default=2087, help="TCP port (default: %(default)s)")
    return parser


def main(argv: list[str] | None = None):
    """Start the language server."""
    args = build_parser().parse_args(argv)

    # Check if we're in debug mode. Messages go to stderr, stdout carries
    # the protocol.
    if os.getenv("DEBUG"):
        print("FV1LS starting in DEBUG mode", file=sys.stderr)
        print("Waiting for debugger to attach on port 5678...", file=sys.stderr)
        try:
            import debugpy  # type: ignore
            debugpy.listen(("127.0.0.1", 5678))
            debugpy.wait_for_client()
            print("Debugger attached! Continuing...", file=sys.stderr)
        except ImportError:
            print("debugpy not available - install with: pip install -e '.[dev]'", file=sys.stderr)

    server = create_server()

    if args.tcp:
        server.start_tcp(args.host, args.port)
    else:
        server.start_io()


if __name__ == "__main__":
    main()

from __future__ import annotations

import argparse
import os
from typing import List, Optional

import uvicorn


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kibitz-server", description="Run the kibitz HTTP API")
    parser.add_argument("--host", default=os.environ.get("KIBITZ_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("KIBITZ_PORT", "8000")))
    parser.add_argument(
        "--log-level",
        default=os.environ.get("KIBITZ_LOG_LEVEL", "info"),
        choices=["critical", "error", "warning", "info", "debug"],
        type=str.lower,
    )
    parser.add_argument(
        "--book",
        default=os.environ.get("KIBITZ_BOOK") or None,
        help="JSON opening book (default: built-in lines)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    # The app factory reads these when uvicorn imports it.
    os.environ["KIBITZ_LOG_LEVEL"] = args.log_level
    if args.book:
        os.environ["KIBITZ_BOOK"] = args.book
    uvicorn.run(
        "kibitz.protocol.http.app:app_from_env",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()

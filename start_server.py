#!/usr/bin/env python3
"""
Run the Taskflow API under uvicorn.

HOST, PORT and RELOAD come from the environment (or .env); command line
flags override them.
"""

import argparse
import os

import uvicorn
from dotenv import load_dotenv


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Start the Taskflow API server")
    parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    parser.add_argument(
        "--no-reload",
        dest="reload",
        action="store_false",
        default=os.getenv("RELOAD", "true").lower() == "true",
        help="disable auto reload on code changes",
    )
    return parser.parse_args(argv)


def main(argv=None):
    load_dotenv()
    args = parse_args(argv)

    print(f"Starting Taskflow API on {args.host}:{args.port} (reload={args.reload})")
    if os.getenv("SCHEDULER_ENABLED", "true").lower() in ("1", "true", "yes", "on"):
        print(f"Alert refresh every {os.getenv('ALERT_REFRESH_MINUTES', '15')} minutes")

    uvicorn.run(
        "main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )


if __name__ == "__main__":
    main()

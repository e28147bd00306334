"""
Quiz Party CLI - Command-line interface for the server.

Usage:
    quizparty serve [--host HOST] [--port PORT] [--reload]   Run the API server
    quizparty config                                         Show effective settings
"""

import argparse
import logging
import os
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Quiz Party - live party quiz server",
        prog="quizparty",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    serve_parser.add_argument(
        "--port", type=int, default=int(os.getenv("PORT", "3000")), help="Port to listen on"
    )
    serve_parser.add_argument("--log-level", help="Logging level (default: QUIZ_LOG_LEVEL or INFO)")
    serve_parser.add_argument("--reload", action="store_true", help="Restart on code changes")

    # Config command
    subparsers.add_parser("config", help="Show effective configuration")

    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "config":
        cmd_config(args)
    else:
        parser.print_help()
        sys.exit(1)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def cmd_serve(args):
    """Run the API server with uvicorn."""
    import uvicorn

    from .config import GameConfig
    from .api import create_app

    config = GameConfig.from_env()
    if args.log_level:
        config = config.with_overrides(log_level=args.log_level.upper())
    configure_logging(config.log_level)

    # Reload mode re-imports the app in a worker, so it needs an import string
    if args.reload:
        app = "quizparty.api.app:app"
    else:
        app = create_app(config=config)

    print("\nQuiz Party Server Running!\n")
    print(f"API docs:    http://localhost:{args.port}/api/docs")
    print(f"Leaderboard: http://localhost:{args.port}/api/leaderboard\n")

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=config.log_level.lower(),
        reload=args.reload,
    )


def cmd_config(args):
    """Print the configuration read from the environment."""
    from .config import GameConfig

    config = GameConfig.from_env()
    for key, value in config.describe().items():
        print(f"{key}: {value}")


if __name__ == "__main__":
    main()

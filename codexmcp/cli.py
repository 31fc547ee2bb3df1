"""CLI entrypoints for codexmcp commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError, ServerConfig, load_config
from .logging import configure_logging
from .models import SearchRequest
from .orchestrator import SearchOrchestrator
from .search.strategies import SearchError
from .security import InvalidPathError
from .stores.directories import VALID_ROLES, DirectoryStore


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codexmcp",
        description="Search configured code directories and serve results over MCP.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .codexmcp.yml or the directory containing it (defaults to current directory).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP/MCP server.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", help="Interface to bind (overrides config).")
    serve_parser.add_argument("--port", type=int, help="Port to listen on (overrides config).")
    serve_parser.add_argument(
        "--no-git-scheduler",
        action="store_true",
        help="Disable background git pulls for directories with an auto-update interval.",
    )

    search_parser = subparsers.add_parser("search", help="Search enabled directories.")
    _add_verbose_option(search_parser, suppress_default=True)
    search_parser.add_argument("query", help="Literal text to search for.")
    search_parser.add_argument("--language", help="Restrict to a language, e.g. go or py.")
    search_parser.add_argument("--path-hint", help="Substring the directory path must contain.")
    search_parser.add_argument(
        "--role", choices=("frontend", "backend"), help="Restrict to frontend or backend directories."
    )
    search_parser.add_argument("--limit", type=int, default=10, help="Max matches (1-20).")

    add_parser = subparsers.add_parser("add-dir", help="Register a directory for searching.")
    _add_verbose_option(add_parser, suppress_default=True)
    add_parser.add_argument("name", help="Display name for the directory.")
    add_parser.add_argument("path", help="Directory path to register.")
    add_parser.add_argument("--language", default="", help="Primary language of the directory.")
    add_parser.add_argument("--role", default="", choices=("", *VALID_ROLES), help="Directory role tag.")

    list_parser = subparsers.add_parser("list-dirs", help="List registered directories.")
    _add_verbose_option(list_parser, suppress_default=True)

    return parser


def _load(parser: argparse.ArgumentParser, config_path: str) -> ServerConfig:
    try:
        return load_config(Path(config_path))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for codexmcp commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    config = _load(parser, args.config)
    configure_logging(verbose=bool(args.verbose), log_file=config.log_file)
    store = DirectoryStore(config.directories_file)

    if args.command == "serve":
        from .service import run_service

        if args.host:
            config.host = args.host
        if args.port:
            config.port = args.port
        if args.no_git_scheduler:
            config.git.enabled = False
        run_service(config)
    elif args.command == "search":
        orchestrator = SearchOrchestrator(store, ignore_file=config.ignore_file)
        request = SearchRequest(
            query=args.query,
            language=args.language,
            path_hint=args.path_hint,
            role=args.role,
            limit=args.limit,
        )
        try:
            matches = orchestrator.search(request)
        except SearchError as exc:
            parser.exit(1, f"codexmcp search failed: {exc}\nRun with --verbose for more details.\n")
        print(json.dumps({"matches": [match.to_dict() for match in matches]}, indent=2))
    elif args.command == "add-dir":
        try:
            directory = store.add(args.name, args.path, args.language, args.role)
        except (InvalidPathError, ValueError) as exc:
            parser.exit(1, f"{exc}\n")
        print(f"Added directory {directory.id}: {directory.path}")
    elif args.command == "list-dirs":
        for directory in store.list():
            state = "enabled" if directory.enabled else "disabled"
            role = directory.role or "-"
            print(f"{directory.id}\t{directory.name}\t{directory.path}\t{role}\t{state}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])

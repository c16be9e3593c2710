"""CLI entry point for nedapay.cli module.

Enables execution via: python -m nedapay.cli {init-db,replay,serve} [OPTIONS]
"""

import sys
from argparse import ArgumentParser

from nedapay.cli import init_db, replay_webhook, serve
from nedapay.core.config import Settings


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="python -m nedapay.cli", description="NEDApay backend tools")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init-db", help="Create ledger tables")
    init_db.add_arguments(init_parser)
    init_parser.set_defaults(run=init_db.run)

    replay_parser = subparsers.add_parser("replay", help="Send a signed webhook payload")
    replay_webhook.add_arguments(replay_parser)
    replay_parser.set_defaults(run=replay_webhook.run)

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve.add_arguments(serve_parser)
    serve_parser.set_defaults(run=serve.run)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = Settings()  # type: ignore[call-arg]
    if args.verbose:
        settings.log_level = "DEBUG"

    return args.run(args, settings)


if __name__ == "__main__":
    sys.exit(main())

"""Register a Slack app so accounts can be linked through it.

The printed id is the ``client_id`` to pass to ``/redirect-link``.

Example usage::

    python -m scripts.register_client --slack-client-id 1234.5678 \
        --client-secret s3cr3t --name "Production app"
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pydantic import ValidationError

from event_listener.clients import RelayStore
from event_listener.core.config import AppSettings, _load_env_file
from event_listener.core.errors import PersistenceError

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Insert a Slack client registration into the listener database."
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the repo root).",
    )
    parser.add_argument(
        "--db-path",
        default=None,
        help="Override the database path from the settings.",
    )
    parser.add_argument(
        "--slack-client-id",
        required=True,
        help="Public client id of the Slack app.",
    )
    parser.add_argument(
        "--client-secret",
        required=True,
        help="Client secret of the Slack app.",
    )
    parser.add_argument("--name", default=None, help="Optional display name.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        _load_env_file(str(args.env_file))
        settings = AppSettings()
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    db_path = args.db_path or settings.database.path

    try:
        store = RelayStore(db_path)
        client = store.create_client(
            slack_client_id=args.slack_client_id,
            client_secret=args.client_secret,
            name=args.name,
        )
    except PersistenceError as exc:
        print(f"Could not register the client: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    print(f"Registered client id={client.id} for slack_client_id={client.provider_client_id}")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())

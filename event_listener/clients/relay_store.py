"""SQLite-backed relational store for OAuth state, teams and integrations."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from event_listener.core.errors import PersistenceError
from event_listener.models.oauth import (
    ClientRegistration,
    Integration,
    OAuthState,
    PendingOAuthState,
    Team,
)

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS client (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        client_id TEXT NOT NULL,
        client_secret TEXT NOT NULL,
        name TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS oauth_state (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        account_id INTEGER NOT NULL,
        client_id INTEGER NOT NULL,
        created TEXT NOT NULL,
        redeemed TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS team (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        slack_team_id TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        created TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS integration (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        account_id INTEGER NOT NULL,
        client_id INTEGER NOT NULL,
        team_id INTEGER NOT NULL,
        slack_user_id TEXT NOT NULL,
        access_token TEXT NOT NULL,
        app_id TEXT NOT NULL,
        created TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS raw_event (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        event BLOB NOT NULL,
        created TEXT NOT NULL
    )
    """,
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RelayStore:
    """Persist OAuth state, client registrations, teams and integrations.

    Each operation opens its own connection, so the store is safe to share
    between concurrent requests. The two halves of the OAuth flow coordinate
    only through the ``oauth_state`` table.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        try:
            if self._db_path.parent and not self._db_path.parent.exists():
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._ensure_schema()
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceError(
                f"Could not initialize the database at {self._db_path}: {exc}"
            ) from exc

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)

    # Client registrations

    def create_client(
        self, *, slack_client_id: str, client_secret: str, name: str | None = None
    ) -> ClientRegistration:
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "INSERT INTO client (client_id, client_secret, name) VALUES (?, ?, ?)",
                    (slack_client_id, client_secret, name),
                )
        except (sqlite3.Error, OverflowError) as exc:
            raise PersistenceError(
                f"Error inserting client for slack_client_id={slack_client_id}: {exc}"
            ) from exc
        return ClientRegistration(
            id=cursor.lastrowid,
            provider_client_id=slack_client_id,
            provider_client_secret=client_secret,
            name=name,
        )

    def get_client(self, client_id: int) -> Optional[ClientRegistration]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT id, client_id, client_secret, name FROM client WHERE id = ?",
                    (client_id,),
                ).fetchone()
        except (sqlite3.Error, OverflowError) as exc:
            raise PersistenceError(
                f"Error getting client_id={client_id}: {exc}"
            ) from exc
        if not row:
            return None
        return ClientRegistration(
            id=row["id"],
            provider_client_id=row["client_id"],
            provider_client_secret=row["client_secret"],
            name=row["name"],
        )

    # OAuth state

    def save_oauth_state(self, *, account_id: int, client_id: int) -> int:
        """Insert a fresh, unredeemed state row and return its id."""
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "INSERT INTO oauth_state (account_id, client_id, created) VALUES (?, ?, ?)",
                    (account_id, client_id, _now()),
                )
        except (sqlite3.Error, OverflowError) as exc:
            raise PersistenceError(
                f"Error saving state for account_id={account_id}, client_id={client_id}: {exc}"
            ) from exc
        return cursor.lastrowid

    def get_oauth_state(
        self, *, state_id: int, account_id: int, client_id: int
    ) -> Optional[PendingOAuthState]:
        """Return the unredeemed state matching all three ids, if any."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    """
                    SELECT
                        os.id,
                        os.account_id,
                        c.id AS client_id,
                        c.client_id AS slack_client_id,
                        c.client_secret
                    FROM oauth_state os
                    JOIN client c ON os.client_id = c.id
                    WHERE os.id = ?
                      AND os.account_id = ?
                      AND os.client_id = ?
                      AND os.redeemed IS NULL
                    ORDER BY os.created DESC, os.id DESC
                    LIMIT 1
                    """,
                    (state_id, account_id, client_id),
                ).fetchone()
        except (sqlite3.Error, OverflowError) as exc:
            raise PersistenceError(
                f"Error getting state for account_id={account_id}, client_id={client_id}: {exc}"
            ) from exc
        if not row:
            return None
        return PendingOAuthState(**dict(row))

    def list_oauth_states(self) -> list[OAuthState]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT id, account_id, client_id, created, redeemed FROM oauth_state ORDER BY id"
                ).fetchall()
        except (sqlite3.Error, OverflowError) as exc:
            raise PersistenceError(f"Error listing OAuth states: {exc}") from exc
        return [OAuthState(**dict(row)) for row in rows]

    # Exchange completion

    def complete_exchange(
        self,
        *,
        state: PendingOAuthState,
        slack_team_id: str,
        team_name: str,
        slack_user_id: str,
        access_token: str,
        app_id: str,
    ) -> Optional[Integration]:
        """Redeem ``state`` and record the team and integration atomically.

        Returns ``None`` when the state was already redeemed by another
        callback, in which case nothing is written. A failing redemption
        statement is logged and the integration is still committed.
        """
        now = _now()
        try:
            with self._connect() as conn:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    cursor = conn.execute(
                        "UPDATE oauth_state SET redeemed = ? WHERE id = ? AND redeemed IS NULL",
                        (now, state.id),
                    )
                except sqlite3.Error:
                    logger.exception("Error redeeming state_id=%d", state.id)
                else:
                    if cursor.rowcount == 0:
                        conn.rollback()
                        return None

                team_id = self._upsert_team(conn, slack_team_id, team_name, now)
                cursor = conn.execute(
                    """
                    INSERT INTO integration (
                        account_id, client_id, team_id, slack_user_id,
                        access_token, app_id, created
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        state.account_id,
                        state.client_id,
                        team_id,
                        slack_user_id,
                        access_token,
                        app_id,
                        now,
                    ),
                )
        except (sqlite3.Error, OverflowError) as exc:
            raise PersistenceError(
                f"Error inserting integration for account_id={state.account_id}, "
                f"client_id={state.client_id}, slack_team_id={slack_team_id}: {exc}"
            ) from exc

        return Integration(
            id=cursor.lastrowid,
            account_id=state.account_id,
            client_id=state.client_id,
            team_id=team_id,
            provider_user_id=slack_user_id,
            access_token=access_token,
            app_id=app_id,
            created=now,
        )

    @staticmethod
    def _upsert_team(
        conn: sqlite3.Connection, slack_team_id: str, name: str, now: str
    ) -> int:
        conn.execute(
            """
            INSERT INTO team (slack_team_id, name, created)
            VALUES (?, ?, ?)
            ON CONFLICT(slack_team_id) DO UPDATE SET name = excluded.name
            """,
            (slack_team_id, name, now),
        )
        row = conn.execute(
            "SELECT id FROM team WHERE slack_team_id = ?", (slack_team_id,)
        ).fetchone()
        return row["id"]

    def get_team(self, slack_team_id: str) -> Optional[Team]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT id, slack_team_id, name, created FROM team WHERE slack_team_id = ?",
                    (slack_team_id,),
                ).fetchone()
        except (sqlite3.Error, OverflowError) as exc:
            raise PersistenceError(
                f"Error getting team for slack_team_id={slack_team_id}: {exc}"
            ) from exc
        if not row:
            return None
        return Team(
            id=row["id"],
            provider_team_id=row["slack_team_id"],
            name=row["name"],
            created=row["created"],
        )

    def list_integrations(self, *, account_id: int) -> list[Integration]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    """
                    SELECT id, account_id, client_id, team_id, slack_user_id,
                           access_token, app_id, created
                    FROM integration
                    WHERE account_id = ?
                    ORDER BY id
                    """,
                    (account_id,),
                ).fetchall()
        except (sqlite3.Error, OverflowError) as exc:
            raise PersistenceError(
                f"Error listing integrations for account_id={account_id}: {exc}"
            ) from exc
        return [
            Integration(
                id=row["id"],
                account_id=row["account_id"],
                client_id=row["client_id"],
                team_id=row["team_id"],
                provider_user_id=row["slack_user_id"],
                access_token=row["access_token"],
                app_id=row["app_id"],
                created=row["created"],
            )
            for row in rows
        ]

    # Raw events

    def insert_raw_event(self, body: bytes) -> int:
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "INSERT INTO raw_event (event, created) VALUES (?, ?)",
                    (body, _now()),
                )
        except (sqlite3.Error, OverflowError) as exc:
            raise PersistenceError(f"Error inserting raw event: {exc}") from exc
        return cursor.lastrowid

    def count_raw_events(self) -> int:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT COUNT(*) AS total FROM raw_event").fetchone()
        except (sqlite3.Error, OverflowError) as exc:
            raise PersistenceError(f"Error counting raw events: {exc}") from exc
        return row["total"]


__all__ = ["RelayStore"]

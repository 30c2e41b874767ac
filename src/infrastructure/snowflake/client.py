"""
Snowflake connections for the video metadata store.

Real connections are opened per request and closed when the request
finishes. In mock mode an in-memory connection stands in for the
warehouse; it understands exactly the statements VideoRepository issues.
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional

from .repositories.videos import SnowflakeConfig, SnowflakeConnection

logger = logging.getLogger(__name__)


class SnowflakeConnectionError(Exception):
    """The metadata store could not be reached or authenticated against."""
    pass


def _load_private_key(key_path: str) -> bytes:
    """Read a PEM key from disk and return it as unencrypted PKCS8 DER."""
    from cryptography.hazmat.primitives import serialization

    with open(key_path, 'rb') as key_file:
        private_key = serialization.load_pem_private_key(key_file.read(), password=None)

    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def _connect_params(config: SnowflakeConfig) -> dict[str, Any]:
    """
    Keyword arguments for ``snowflake.connector.connect``.

    A configured private key wins over a password.
    """
    params: dict[str, Any] = {
        'account': config.account,
        'user': config.user,
        'database': config.database,
        'schema': config.schema,
        'warehouse': config.warehouse,
    }
    if config.role:
        params['role'] = config.role

    if config.private_key_path:
        params['private_key'] = _load_private_key(config.private_key_path)
        auth_method = "key-pair"
    elif config.password:
        params['password'] = config.password
        auth_method = "password"
    else:
        raise SnowflakeConnectionError("Either password or private_key_path must be provided")

    logger.debug("Snowflake auth method selected", extra={"auth_method": auth_method})
    return params


@contextmanager
def get_snowflake_connection(config: SnowflakeConfig) -> Generator[SnowflakeConnection, None, None]:
    """
    Open a connection and close it when the block exits.

        with get_snowflake_connection(config) as conn:
            repository = VideoRepository(conn)
    """
    import snowflake.connector

    params = _connect_params(config)
    try:
        conn = snowflake.connector.connect(**params)
    except snowflake.connector.errors.Error as e:
        logger.error(
            "Could not connect to Snowflake",
            extra={"account": config.account, "error": str(e)},
        )
        raise SnowflakeConnectionError(f"Database connection failed: {e}") from e

    logger.debug(
        "Opened Snowflake connection",
        extra={"database": config.database, "schema": config.schema},
    )

    try:
        yield conn
    finally:
        try:
            conn.close()
        except Exception as e:
            logger.warning("Error closing Snowflake connection", extra={"error": str(e)})


# ---------------------------------------------------------------------------
# Mock Connection for Local Development
# ---------------------------------------------------------------------------

class MockSnowflakeCursor:
    """
    Cursor over the in-memory tables.

    Supports the INSERT, UPDATE and SELECT statements VideoRepository
    issues and nothing else. Statements are matched by prefix and rows
    are tuples in the column order VideoRepository selects.
    """

    def __init__(self, storage: dict) -> None:
        self._storage = storage
        self._results: list = []
        self._rowcount: int = 0

    def execute(self, query: str, params: Optional[tuple] = None) -> 'MockSnowflakeCursor':
        logger.debug(
            "Mock cursor execute",
            extra={"query": query[:100], "params": params}
        )

        query_upper = query.upper().strip()
        self._results = []
        self._rowcount = 0

        if query_upper.startswith('INSERT INTO VIDEOS'):
            self._handle_insert(params)
        elif query_upper.startswith('UPDATE VIDEOS'):
            self._handle_update(params)
        elif query_upper.startswith('SELECT'):
            self._handle_select(query_upper, params)

        return self

    def _handle_insert(self, params: Optional[tuple]) -> None:
        if not params:
            return
        self._storage['videos'][str(params[0])] = tuple(params)
        self._rowcount = 1

    def _handle_update(self, params: Optional[tuple]) -> None:
        if not params:
            return
        title, description, thumbnail_url, video_url, updated_at, video_id = params
        row = self._storage['videos'].get(str(video_id))
        if row is None:
            return
        self._storage['videos'][str(video_id)] = (
            row[0], row[1], title, description,
            thumbnail_url, video_url, row[6], updated_at,
        )
        self._rowcount = 1

    def _handle_select(self, query: str, params: Optional[tuple]) -> None:
        if not params or 'FROM VIDEOS' not in query:
            return

        if 'WHERE VIDEO_ID' in query:
            row = self._storage['videos'].get(str(params[0]))
            self._results = [row] if row else []

        elif 'WHERE USER_ID' in query:
            user_id = str(params[0])
            limit = params[1] if len(params) > 1 else None
            rows = [r for r in self._storage['videos'].values() if r[1] == user_id]
            rows.sort(key=lambda r: r[6], reverse=True)
            self._results = rows[:limit] if limit is not None else rows

    def fetchone(self):
        if not self._results:
            return None
        return self._results[0]

    def fetchall(self) -> list:
        return list(self._results)

    def close(self) -> None:
        """Close cursor (no-op for mock)."""
        pass

    @property
    def rowcount(self) -> int:
        return self._rowcount


class MockSnowflakeConnection:
    """
    In-memory stand-in for a Snowflake connection.

    Rows live in a dict keyed by video ID, so one instance shared across
    requests behaves like a tiny database for local runs and tests.
    """

    def __init__(self) -> None:
        self._storage: dict[str, dict[str, tuple]] = {
            'videos': {},
        }

        logger.info("Initialized mock Snowflake connection (in-memory)")

    def cursor(self) -> MockSnowflakeCursor:
        return MockSnowflakeCursor(self._storage)

    def commit(self) -> None:
        logger.debug("Mock connection commit")

    def rollback(self) -> None:
        logger.debug("Mock connection rollback")

    def close(self) -> None:
        logger.debug("Mock connection close")


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

@contextmanager
def create_snowflake_connection(
    config: Optional[SnowflakeConfig] = None,
    mock_mode: bool = False,
) -> Generator[SnowflakeConnection, None, None]:
    """
    Create Snowflake connection based on configuration.

    Factory function that yields either a real or mock connection
    depending on mock_mode flag.

    Args:
        config: Snowflake configuration (required if not mock_mode)
        mock_mode: If True, yield a fresh in-memory connection
    """
    if mock_mode:
        conn = MockSnowflakeConnection()
        try:
            yield conn
        finally:
            conn.close()
        return

    if config is None:
        raise ValueError("config is required when not in mock mode")

    with get_snowflake_connection(config) as conn:
        yield conn

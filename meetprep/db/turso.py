"""libSQL connection wrapper backing the discovery cache and artifact store."""

import logging
from typing import Any

from libsql_client import Client, ResultSet, create_client

from meetprep.config import settings

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_URL = "file:meetprep.db"


class TursoClient:
    """Thin async wrapper over a libSQL client.

    Talks to a Turso cloud database when a ``libsql://`` URL and auth token
    are configured, otherwise to a local SQLite file.
    """

    def __init__(
        self,
        url: str | None = None,
        auth_token: str | None = None,
    ):
        """Store connection parameters; the connection opens in connect().

        Args:
            url: Database URL. Defaults to settings, then a local file.
            auth_token: Turso auth token. Defaults to settings.
        """
        self.url = url or settings.turso_database_url or DEFAULT_LOCAL_URL
        self.auth_token = auth_token or settings.turso_auth_token
        self._client: Client | None = None

    @property
    def is_remote(self) -> bool:
        return bool(self.auth_token) and self.url.startswith("libsql://")

    async def connect(self) -> None:
        """Open the connection. Calling twice is a no-op."""
        if self._client is not None:
            return

        if self.is_remote:
            self._client = create_client(url=self.url, auth_token=self.auth_token)
        else:
            self._client = create_client(url=self.url)

        logger.info(f"Connected to cache database: {self.url}")

    def _require_client(self) -> Client:
        if self._client is None:
            msg = "Not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._client

    async def execute(
        self,
        sql: str,
        params: list[Any] | None = None,
    ) -> ResultSet:
        """Run one statement with ``?`` placeholders and return its result set."""
        return await self._require_client().execute(sql, params or [])

    async def execute_batch(self, statements: list[str]) -> None:
        """Run several parameterless statements (schema setup) in one batch."""
        await self._require_client().batch(statements)

    async def close(self) -> None:
        if self._client:
            await self._client.close()
            self._client = None
            logger.info("Cache database connection closed")

    async def is_healthy(self) -> bool:
        """Return True when a trivial query round-trips."""
        try:
            if not self._client:
                return False
            result = await self._client.execute("SELECT 1")
            return len(result.rows) == 1
        except Exception:
            return False

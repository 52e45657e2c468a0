"""Neo4j gateway for the food catalog graph.

Executes parameterized Cypher against the graph store and returns rows
as plain dictionaries. Every call is bounded by a timeout and driver
failures surface as UpstreamQueryError.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncManagedTransaction, AsyncSession
from neo4j.exceptions import DriverError, Neo4jError, TransientError

from gourmet.config import config
from gourmet.errors import UpstreamQueryError

logger = logging.getLogger(__name__)


class Neo4jService:
    """Service for interacting with the Neo4j graph database."""

    def __init__(
        self,
        uri: str | None = None,
        user: str | None = None,
        password: str | None = None,
        database: str | None = None,
        timeout: float | None = None,
    ):
        """Initialize Neo4j connection settings.

        The driver (and its connection pool) is created on first use.

        Args:
            uri: Neo4j connection URI. Defaults to config value.
            user: Neo4j username. Defaults to config value.
            password: Neo4j password. Defaults to config value.
            database: Target database name. Defaults to the server default.
            timeout: Seconds allowed per call. Defaults to config value.
        """
        self._uri = uri or config.NEO4J_URI
        self._user = user or config.NEO4J_USER
        self._password = password or config.NEO4J_PASSWORD
        self._database = database or config.NEO4J_DATABASE
        self._timeout = timeout if timeout is not None else config.QUERY_TIMEOUT_SECONDS
        self._driver: AsyncDriver | None = None

    @property
    def driver(self) -> AsyncDriver:
        """Get or create the Neo4j driver."""
        if self._driver is None:
            self._driver = AsyncGraphDatabase.driver(
                self._uri,
                auth=(self._user, self._password),
            )
        return self._driver

    async def close(self) -> None:
        """Close the Neo4j driver connection."""
        if self._driver is not None:
            await self._driver.close()
            self._driver = None

    async def verify_connectivity(self) -> bool:
        """Verify that the database is reachable.

        Returns:
            True if connection is successful.

        Raises:
            UpstreamQueryError: If the database is not reachable.
        """
        await self._bounded(self.driver.verify_connectivity(), "verify_connectivity")
        return True

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Create a session context manager.

        Yields:
            Neo4j async session instance.
        """
        session = self.driver.session(database=self._database)
        try:
            yield session
        finally:
            await session.close()

    async def _bounded(self, awaitable: Any, label: str) -> Any:
        """Await a driver call under the configured timeout.

        Raises:
            UpstreamQueryError: On timeout or any driver/database error.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.error("Neo4j %s timed out after %.1fs", label, self._timeout)
            raise UpstreamQueryError(f"Graph query timed out after {self._timeout}s") from e
        except (Neo4jError, DriverError) as e:
            logger.error("Neo4j %s failed: %s", label, e)
            raise UpstreamQueryError(f"Graph query failed: {e}") from e

    async def query_all(self, query: str, limit: int = 100, **params: Any) -> list[dict[str, Any]]:
        """Run a read query and return up to `limit` rows.

        `limit` is also passed to Cypher as `$limit`.

        Args:
            query: Parameterized Cypher read query.
            limit: Maximum number of rows to return.
            **params: Query parameters.

        Returns:
            List of row dictionaries. An empty list is a valid result.
        """
        params["limit"] = limit

        async def work(tx: AsyncManagedTransaction) -> list[dict[str, Any]]:
            result = await tx.run(query, params)
            records = await result.fetch(limit)
            return [dict(record) for record in records]

        async def run() -> list[dict[str, Any]]:
            async with self.session() as session:
                return await session.execute_read(work)

        return await self._bounded(run(), "query_all")

    async def query_one(self, query: str, **params: Any) -> dict[str, Any] | None:
        """Run a read query and return the first row, or None."""
        rows = await self.query_all(query, limit=1, **params)
        return rows[0] if rows else None

    async def command(
        self,
        query: str,
        max_retries: int = 3,
        **params: Any,
    ) -> dict[str, Any] | None:
        """Execute a write query and return its first row.

        Args:
            query: Parameterized Cypher write query.
            max_retries: Maximum retry attempts for transient errors.
            **params: Query parameters.

        Returns:
            First returned row, or None if the write matched nothing.

        Raises:
            UpstreamQueryError: If the write fails or retries are exhausted.
        """

        async def work(tx: AsyncManagedTransaction) -> dict[str, Any] | None:
            result = await tx.run(query, params)
            record = await result.single()
            return dict(record) if record else None

        async def run() -> dict[str, Any] | None:
            for attempt in range(max_retries):
                try:
                    async with self.session() as session:
                        return await session.execute_write(work)
                except TransientError:
                    if attempt < max_retries - 1:
                        # Exponential backoff
                        await asyncio.sleep(0.1 * (2**attempt))
                        continue
                    raise
            return None

        return await self._bounded(run(), "command")

    async def create_constraints(self) -> list[str]:
        """Create unique constraints for all entity types.

        This should be called once during database initialization.

        Returns:
            List of created constraint names.
        """
        constraints = [
            ("food_id_unique", "CREATE CONSTRAINT food_id_unique IF NOT EXISTS FOR (f:Food) REQUIRE f.food_id IS UNIQUE"),
            ("user_id_unique", "CREATE CONSTRAINT user_id_unique IF NOT EXISTS FOR (u:User) REQUIRE u.user_id IS UNIQUE"),
            ("region_name_unique", "CREATE CONSTRAINT region_name_unique IF NOT EXISTS FOR (r:Region) REQUIRE r.name IS UNIQUE"),
            ("ingredient_name_unique", "CREATE CONSTRAINT ingredient_name_unique IF NOT EXISTS FOR (i:Ingredient) REQUIRE i.name IS UNIQUE"),
            ("food_name_index", "CREATE INDEX food_name_index IF NOT EXISTS FOR (f:Food) ON (f.name)"),
        ]

        async def run() -> list[str]:
            created = []
            async with self.session() as session:
                for name, query in constraints:
                    result = await session.run(query)
                    await result.consume()
                    created.append(name)
            return created

        return await self._bounded(run(), "create_constraints")

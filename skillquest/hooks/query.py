"""
Read and write hooks over the shared QueryCache.

A Query is a cache-keyed, lazily evaluated read; a Mutation is a one-shot
write that, on success, invalidates the reads its descriptor declares.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional

from skillquest.database.query_cache import QueryCache, QueryKey, QueryResult, QueryStatus
from skillquest.integrations.contracts.interfaces import PlatformClient
from skillquest.integrations.contracts.routes import API, ApiTable, OperationDescriptor
from skillquest.integrations.errors import ContractError

logger = logging.getLogger(__name__)


class Subscription:
    """Keeps a query key observed until closed; use as a context manager."""

    def __init__(self, query: "Query") -> None:
        self.query = query
        self.closed = False
        query.cache.observe(query.key)

    async def result(self) -> QueryResult:
        return await self.query.result()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.query.cache.release(self.query.key)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class Query:
    def __init__(
        self,
        cache: QueryCache,
        key: QueryKey,
        fetcher: Callable[[], Awaitable[Any]],
        *,
        enabled: bool = True,
    ) -> None:
        self.cache = cache
        self.key = tuple(key)
        self._fetcher = fetcher
        self.enabled = enabled

    async def result(self) -> QueryResult:
        """Resolve without raising: failures come back as an error-state result."""
        if not self.enabled:
            return QueryResult(key=self.key, status=QueryStatus.IDLE)
        return await self.cache.fetch(self.key, self._fetcher)

    async def fetch(self) -> Any:
        """Resolve and return the data, raising the stored error if the read failed."""
        return (await self.result()).unwrap()

    async def refetch(self) -> QueryResult:
        if not self.enabled:
            return QueryResult(key=self.key, status=QueryStatus.IDLE)
        return await self.cache.fetch(self.key, self._fetcher, force=True)

    def peek(self) -> QueryResult:
        return self.cache.peek(self.key)

    def invalidate(self) -> List[QueryKey]:
        return self.cache.invalidate(self.key)

    def subscribe(self) -> Subscription:
        return Subscription(self)

    def __repr__(self) -> str:
        return f"Query(key={self.key!r}, enabled={self.enabled})"


class Mutation:
    def __init__(
        self,
        client: PlatformClient,
        cache: QueryCache,
        descriptor: OperationDescriptor,
        *,
        extra_invalidations: Iterable[QueryKey] = (),
        table: ApiTable = API,
    ) -> None:
        if not descriptor.is_mutation:
            raise ValueError(f"{descriptor.name} is a read operation, not a mutation")
        self.client = client
        self.cache = cache
        self.descriptor = descriptor
        self.extra_invalidations = [tuple(k) for k in extra_invalidations]
        self.table = table
        self.last_invalidated: List[QueryKey] = []

    def invalidation_prefixes(self) -> List[QueryKey]:
        prefixes: List[QueryKey] = [(self.table.get(name).path_template,) for name in self.descriptor.invalidates]
        prefixes.extend(self.extra_invalidations)
        return prefixes

    async def __call__(self, *, params: Optional[Mapping[str, Any]] = None, body: Any = None) -> Any:
        """
        Execute once. Raises a ContractError on any non-2xx status; nothing is
        retried and nothing is invalidated on failure.
        """
        try:
            data = await self.client.execute(self.descriptor, params=params, body=body)
        except ContractError as exc:
            logger.info("Mutation %s failed: %s", self.descriptor.name, exc)
            raise

        invalidated: List[QueryKey] = []
        for prefix in self.invalidation_prefixes():
            invalidated.extend(self.cache.invalidate(prefix))
        self.last_invalidated = invalidated
        return data

    async def mutate(self, **variables: Any) -> Any:
        """Variables named like a path placeholder fill the URL; the rest form the body."""
        params = {name: variables.pop(name) for name in self.descriptor.placeholders if name in variables}
        return await self(params=params, body=variables or None)

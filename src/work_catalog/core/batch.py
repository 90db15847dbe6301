"""Batch resolution of independent queries.

Every query is a pure function of the registry, the index and the query, so
a batch can be spread over worker threads. The index is parsed once per
scheme and shared by every query of the batch. Results are always returned
in input order.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterable, List, Optional

from ..domain.queries import Query, QueryResult
from ..domain.result import DomainError, Result
from .resolver import CatalogIndex, ParsedIndexCache, QueryResolver

logger = logging.getLogger(__name__)


class BatchResolver:
    """Runs many queries against one registry and index."""

    def __init__(self, resolver: QueryResolver, max_workers: Optional[int] = None):
        """Initialize the batch resolver.

        Args:
            resolver: Resolver shared by all queries
            max_workers: Worker threads; ``None`` or 1 resolves sequentially
        """
        self._resolver = resolver
        self._max_workers = max_workers

    def resolve_all(self, queries: Iterable[Query], index: CatalogIndex,
                    fail_fast: bool = False) -> List[Result[QueryResult, DomainError]]:
        """Resolve every query.

        Args:
            queries: Queries to resolve
            index: Read-only catalog index shared by all queries
            fail_fast: Stop after the first failed query; later queries are
                not reported

        Returns:
            One Result per query, in input order
        """
        queries = list(queries)
        cache = ParsedIndexCache()
        if not self._max_workers or self._max_workers <= 1 or len(queries) <= 1:
            return self._resolve_sequential(queries, index, cache, fail_fast)

        results: List[Result[QueryResult, DomainError]] = []
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures: List[Future] = [
                executor.submit(self._resolver.resolve, query, index, cache) for query in queries
            ]
            for future in futures:
                result = future.result()
                results.append(result)
                if fail_fast and result.is_failure():
                    for pending in futures:
                        pending.cancel()
                    break

        self._log_summary(results, len(queries))
        return results

    def _resolve_sequential(self, queries: List[Query], index: CatalogIndex,
                            cache: ParsedIndexCache, fail_fast: bool) -> List[Result[QueryResult, DomainError]]:
        results: List[Result[QueryResult, DomainError]] = []
        for query in queries:
            result = self._resolver.resolve(query, index, cache)
            results.append(result)
            if fail_fast and result.is_failure():
                break
        self._log_summary(results, len(queries))
        return results

    @staticmethod
    def _log_summary(results: List[Result[QueryResult, DomainError]], total: int) -> None:
        failed = sum(1 for r in results if r.is_failure())
        logger.info(f"Resolved {len(results)}/{total} queries ({failed} failed)")

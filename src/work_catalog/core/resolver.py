"""Query resolution over a read-only catalog index.

The index maps ``(scheme id, canonical number)`` to a composition id. It is
built and owned by the caller; the resolver only reads it.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..domain.queries import (
    ExactSelector,
    GroupSelector,
    Query,
    QueryResult,
    RangeSelector,
    ResultEntry,
)
from ..domain.result import (
    AmbiguousRange,
    DataIntegrityError,
    DomainError,
    EditionNotFound,
    Failure,
    Result,
    Success,
    collect,
)
from ..domain.scheme import CatalogScheme
from ..domain.value_objects import CatalogNumber, CatalogWarning, SortKey, WarningKind
from .editions import EditionResolver
from .parser import NumberParser
from .registry import SchemeRegistry
from .sort_keys import SortKeyGenerator

logger = logging.getLogger(__name__)

CatalogIndex = Mapping[Tuple[str, str], str]


@dataclass(frozen=True, slots=True)
class _IndexedEntry:
    key: SortKey
    composition_id: str
    number: CatalogNumber


class ParsedIndexCache:
    """Parsed index entries per scheme and index.

    One cache can be shared by the queries of a batch so the index is parsed
    once per scheme. The index must not change while the cache is in use.
    """

    def __init__(self):
        self._entries: Dict[Tuple[int, int], Tuple[CatalogScheme, CatalogIndex, Tuple[_IndexedEntry, ...]]] = {}
        self._lock = threading.Lock()

    def get(self, scheme: CatalogScheme, index: CatalogIndex,
            build: Callable[[], Tuple[_IndexedEntry, ...]]) -> Tuple[_IndexedEntry, ...]:
        key = (id(scheme), id(index))
        with self._lock:
            cached = self._entries.get(key)
            if cached is None:
                # keep scheme and index alive so their ids stay unique
                cached = (scheme, index, build())
                self._entries[key] = cached
            return cached[2]


class QueryResolver:
    """Resolves exact, range and group queries to ordered compositions."""

    def __init__(self, registry: SchemeRegistry, parser: Optional[NumberParser] = None,
                 sort_keys: Optional[SortKeyGenerator] = None):
        self._registry = registry
        self._parser = parser or NumberParser()
        self._sort_keys = sort_keys or SortKeyGenerator()

    @property
    def registry(self) -> SchemeRegistry:
        return self._registry

    def resolve(self, query: Query, index: CatalogIndex,
                cache: Optional[ParsedIndexCache] = None) -> Result[QueryResult, DomainError]:
        """Resolve one query.

        Per-query problems (unparseable input, unknown scheme or edition,
        inverted ranges, inconsistent data) come back as a Failure; they are
        never raised.

        Args:
            query: Query to resolve
            index: Read-only catalog index
            cache: Parsed entries shared with other queries on the same index
        """
        if cache is None:
            cache = ParsedIndexCache()
        return self._registry.lookup(query.scheme, query.composer).flat_map(
            lambda scheme: self._dispatch(scheme, query, index, cache)
        )

    def _dispatch(self, scheme: CatalogScheme, query: Query, index: CatalogIndex,
                  cache: ParsedIndexCache) -> Result[QueryResult, DomainError]:
        try:
            selector = query.selector
            if isinstance(selector, ExactSelector):
                return self._resolve_exact(scheme, query, selector, index, cache)
            if isinstance(selector, RangeSelector):
                return self._resolve_range(scheme, query, selector, index, cache)
            if isinstance(selector, GroupSelector):
                return self._resolve_group(scheme, query, selector, index, cache)
            raise TypeError(f"Unknown selector: {selector!r}")
        except DataIntegrityError as e:
            logger.error(f"Data integrity error in scheme {scheme.id}: {e}")
            return Failure(e)

    # Exact lookups

    def _resolve_exact(self, scheme: CatalogScheme, query: Query, selector: ExactSelector,
                       index: CatalogIndex, cache: ParsedIndexCache) -> Result[QueryResult, DomainError]:
        parsed = self._parser.parse(scheme, selector.number, edition=query.edition)
        if parsed.is_failure():
            return Failure(parsed.error())
        requested = number = parsed.value()
        warnings: List[CatalogWarning] = []

        if scheme.has_editions:
            resolution = EditionResolver(scheme).resolve(
                number.raw, query.edition, strict=query.effective_strict(scheme)
            )
            if resolution.is_failure():
                error = resolution.error()
                if error.strict_rejection:
                    warnings.append(CatalogWarning(WarningKind.REJECTED, number.raw, error.canonical))
                    return Success(QueryResult((), tuple(warnings)))
                return Failure(error)

            resolved = resolution.value()
            if resolved.warning:
                warnings.append(resolved.warning)
            if resolved.canonical.lower() != number.raw.lower():
                number = self._parse_canonical(scheme, resolved.canonical)
        elif query.edition is not None:
            return Failure(self._no_edition(scheme, query.edition, number.raw))

        hit = self._lookup_exact(scheme, number, index, cache)
        if hit is None and number is not requested:
            # the work may only be indexed under the number it was asked for
            hit = self._lookup_exact(scheme, requested, index, cache)
        if hit is not None:
            return Success(QueryResult((ResultEntry(hit.number, hit.composition_id),), tuple(warnings)))

        key = self._sort_keys.for_number(scheme, number)
        if not warnings and key.has_trailing_absent:
            logger.debug(f"{scheme.id} {number.raw} not indexed; trying it as a group")
            members = self._group_members(scheme, key, self._scheme_entries(scheme, index, cache))
            return Success(self._listing(scheme, members, query.effective_strict(scheme), warnings))

        return Success(QueryResult((), tuple(warnings)))

    def _parse_canonical(self, scheme: CatalogScheme, canonical: str) -> CatalogNumber:
        parsed = self._parser.parse(scheme, canonical)
        if parsed.is_failure():
            raise DataIntegrityError(
                f"{scheme.id}: canonical number {canonical} does not match the scheme pattern",
                scheme_id=scheme.id,
            )
        return parsed.value()

    def _lookup_exact(self, scheme: CatalogScheme, number: CatalogNumber, index: CatalogIndex,
                      cache: ParsedIndexCache) -> Optional[_IndexedEntry]:
        key = self._sort_keys.for_number(scheme, number)
        direct = index.get((scheme.id, number.raw))
        if direct is not None:
            return _IndexedEntry(key, direct, number)

        matches = [entry for entry in self._scheme_entries(scheme, index, cache) if entry.key == key]
        if len({entry.composition_id for entry in matches}) > 1:
            raise DataIntegrityError(
                f"{scheme.id}: {', '.join(e.number.raw for e in matches)} collide on sort key {key}",
                scheme_id=scheme.id,
            )
        return matches[0] if matches else None

    @staticmethod
    def _no_edition(scheme: CatalogScheme, edition: str, number: Optional[str] = None) -> EditionNotFound:
        if not scheme.has_editions:
            return EditionNotFound(f"{scheme.id} has no editions", number=number, edition=edition)
        return EditionNotFound(f"{scheme.id} has no edition '{edition}'", number=number, edition=edition)

    # Listings

    def _resolve_range(self, scheme: CatalogScheme, query: Query, selector: RangeSelector,
                       index: CatalogIndex, cache: ParsedIndexCache) -> Result[QueryResult, DomainError]:
        bounds = collect([
            self._parser.parse(scheme, selector.start),
            self._parser.parse(scheme, selector.end),
        ])
        if bounds.is_failure():
            return Failure(bounds.error()[0])
        start, end = bounds.value()

        start_key = self._sort_keys.for_number(scheme, start)
        end_key = self._sort_keys.for_number(scheme, end)
        if start_key > end_key:
            return Failure(AmbiguousRange(
                f"{scheme.id} range {start.raw}-{end.raw}: start sorts after end"
            ))
        if (not scheme.allow_cross_group_ranges
                and self._sort_keys.group_prefix(scheme, start_key)
                != self._sort_keys.group_prefix(scheme, end_key)):
            return Failure(AmbiguousRange(
                f"{scheme.id} range {start.raw}-{end.raw} spans several groups"
            ))

        ceiling = end_key.ceiling()
        if query.edition is not None:
            return self._edition_listing(
                scheme, query.edition, lambda key: start_key <= key <= ceiling, index, cache
            )

        members = [
            entry for entry in self._scheme_entries(scheme, index, cache)
            if start_key <= entry.key <= ceiling
        ]
        return Success(self._listing(scheme, members, query.effective_strict(scheme), []))

    def _resolve_group(self, scheme: CatalogScheme, query: Query, selector: GroupSelector,
                       index: CatalogIndex, cache: ParsedIndexCache) -> Result[QueryResult, DomainError]:
        parsed = self._parser.parse(scheme, selector.group)
        if parsed.is_failure():
            return Failure(parsed.error())

        key = self._sort_keys.for_number(scheme, parsed.value())
        if query.edition is not None:
            prefix = self._sort_keys.group_prefix(scheme, key)
            return self._edition_listing(
                scheme, query.edition,
                lambda other: self._sort_keys.group_prefix(scheme, other) == prefix, index, cache,
            )

        members = self._group_members(scheme, key, self._scheme_entries(scheme, index, cache))
        return Success(self._listing(scheme, members, query.effective_strict(scheme), []))

    def _edition_listing(self, scheme: CatalogScheme, edition: str, selects: Callable[[SortKey], bool],
                         index: CatalogIndex, cache: ParsedIndexCache) -> Result[QueryResult, DomainError]:
        """List the works an edition numbered inside a range or group.

        Selection runs over the edition's own numbers; each is shown as that
        edition printed it and mapped to the work indexed under its current
        number.
        """
        edition = edition.strip()
        if edition not in scheme.edition_names:
            return Failure(self._no_edition(scheme, edition))

        editions = EditionResolver(scheme)
        kept = []
        for alias in scheme.editions:
            if alias.edition != edition:
                continue
            number = self._parse_canonical(scheme, alias.number)
            key = self._sort_keys.for_number(scheme, number)
            if not selects(key):
                continue

            current = self._parse_canonical(scheme, editions.follow(alias).canonical)
            hit = self._lookup_exact(scheme, current, index, cache)
            if hit is None and current.raw.lower() != number.raw.lower():
                hit = self._lookup_exact(scheme, number, index, cache)
            if hit is None:
                logger.debug(f"{scheme.id} {alias.number} (edition {edition}) is not indexed")
                continue
            kept.append(_IndexedEntry(key, hit.composition_id, number))

        kept.sort(key=lambda e: (e.key, e.composition_id))
        return Success(QueryResult(tuple(ResultEntry(e.number, e.composition_id) for e in kept), ()))

    def _group_members(self, scheme: CatalogScheme, key: SortKey,
                       entries: Sequence[_IndexedEntry]) -> List[_IndexedEntry]:
        prefix = self._sort_keys.group_prefix(scheme, key)
        return [
            entry for entry in entries
            if self._sort_keys.group_prefix(scheme, entry.key) == prefix
        ]

    def _listing(self, scheme: CatalogScheme, members: Sequence[_IndexedEntry], strict: bool,
                 warnings: List[CatalogWarning]) -> QueryResult:
        """Order listing members, handling entries indexed under superseded numbers.

        Strict listings drop such entries; otherwise they are kept unchanged
        and flagged, never replaced by their canonical number.
        """
        editions = EditionResolver(scheme) if scheme.has_editions else None
        kept = []
        for entry in members:
            if editions is not None and editions.is_superseded(entry.number.raw):
                current = editions.current_for(entry.number.raw)
                if strict:
                    warnings.append(CatalogWarning(WarningKind.EXCLUDED, entry.number.raw, current))
                    continue
                warnings.append(CatalogWarning(WarningKind.SUPERSEDED, entry.number.raw, current))
            kept.append(entry)

        kept.sort(key=lambda e: (e.key, e.composition_id))
        return QueryResult(
            tuple(ResultEntry(e.number, e.composition_id) for e in kept),
            tuple(warnings),
        )

    def _scheme_entries(self, scheme: CatalogScheme, index: CatalogIndex,
                        cache: ParsedIndexCache) -> Tuple[_IndexedEntry, ...]:
        return cache.get(scheme, index, lambda: self._parse_entries(scheme, index))

    def _parse_entries(self, scheme: CatalogScheme, index: CatalogIndex) -> Tuple[_IndexedEntry, ...]:
        entries = []
        for (scheme_id, raw), composition_id in index.items():
            if not scheme.matches_id(scheme_id):
                continue
            parsed = self._parser.parse(scheme, raw)
            if parsed.is_failure():
                logger.warning(f"Skipping index entry {scheme_id} {raw}: {parsed.error()}")
                continue
            number = parsed.value()
            entries.append(_IndexedEntry(self._sort_keys.for_number(scheme, number), composition_id, number))
        return tuple(entries)

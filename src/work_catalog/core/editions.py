"""Cross-edition alias resolution.

The alias entries of a scheme form a small directed graph per work: every
superseded number points at the number that replaced it, and each chain ends
in exactly one entry marked current. Chains are followed iteratively with a
visited set so that malformed data is reported instead of looping.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from ..domain.result import DataIntegrityError, EditionNotFound, Failure, Result, Success
from ..domain.scheme import CatalogScheme
from ..domain.value_objects import CatalogWarning, EditionAlias, WarningKind

logger = logging.getLogger(__name__)


def _normalize(number: str) -> str:
    return number.strip().lower()


@dataclass(frozen=True, slots=True)
class EditionResolution:
    """Canonical number for a reference, with a warning if it was substituted."""
    canonical: str
    warning: Optional[CatalogWarning] = None

    @property
    def substituted(self) -> bool:
        return self.warning is not None


class EditionResolver:
    """Maps possibly obsolete numbers of one scheme to their current number."""

    def __init__(self, scheme: CatalogScheme):
        self._scheme = scheme
        self._by_edition: Dict[Tuple[str, str], EditionAlias] = {}
        self._by_number: Dict[str, List[EditionAlias]] = defaultdict(list)

        for alias in scheme.editions:
            self._by_edition[(alias.edition, _normalize(alias.number))] = alias
            self._by_number[_normalize(alias.number)].append(alias)

    @property
    def scheme(self) -> CatalogScheme:
        return self._scheme

    def resolve(self, number: str, edition: Optional[str] = None,
                strict: bool = False) -> Result[EditionResolution, EditionNotFound]:
        """Resolve ``number`` to the current canonical number.

        Args:
            number: Catalog number as written by the caller
            edition: Edition the number is quoted from, if known
            strict: Refuse superseded numbers instead of substituting them

        Returns:
            Success(EditionResolution) or Failure(EditionNotFound)

        Raises:
            DataIntegrityError: If an alias chain is cyclic, dangling or forks
        """
        if edition is not None:
            return self._resolve_in_edition(number, edition.strip())

        aliases = self._by_number.get(_normalize(number))
        if not aliases:
            return Success(EditionResolution(number))

        current = [alias for alias in aliases if alias.is_current]
        if current:
            return Success(EditionResolution(current[0].number))

        targets = {self.follow(alias).canonical for alias in aliases}
        if len(targets) > 1:
            return Failure(EditionNotFound(
                f"{self._scheme.id} {number} was renumbered differently across editions "
                f"({', '.join(sorted(targets))}); specify an edition",
                number=number,
            ))

        target = targets.pop()
        if strict:
            return Failure(EditionNotFound(
                f"{self._scheme.id} {number} is superseded by {target}",
                number=number,
                strict_rejection=True,
                canonical=target,
            ))

        logger.debug(f"{self._scheme.id} {number} resolved to {target} (superseded)")
        return Success(EditionResolution(
            target, CatalogWarning(WarningKind.SUPERSEDED, aliases[0].number, target)
        ))

    def _resolve_in_edition(self, number: str, edition: str) -> Result[EditionResolution, EditionNotFound]:
        if edition not in self._scheme.edition_names:
            return Failure(EditionNotFound(
                f"{self._scheme.id} has no edition '{edition}'", number=number, edition=edition
            ))

        alias = self._by_edition.get((edition, _normalize(number)))
        if alias is None:
            return Failure(EditionNotFound(
                f"{self._scheme.id} {number} does not appear in edition {edition}",
                number=number,
                edition=edition,
            ))

        return Success(EditionResolution(self.follow(alias).canonical))

    def follow(self, alias: EditionAlias) -> EditionAlias:
        """Follow superseded links from ``alias`` to the entry marked current.

        Raises:
            DataIntegrityError: On a cycle, a link to a number with no alias
                entry, or a link that forks into several targets
        """
        visited: Set[str] = {_normalize(alias.number)}
        node = alias
        while not node.is_current:
            target = _normalize(node.canonical)
            if target in visited:
                raise DataIntegrityError(
                    f"{self._scheme.id}: edition alias chain starting at {alias.number} is cyclic",
                    scheme_id=self._scheme.id,
                )
            visited.add(target)

            candidates = self._by_number.get(target)
            if not candidates:
                raise DataIntegrityError(
                    f"{self._scheme.id}: {node.number} is superseded by {node.canonical}, "
                    f"which has no edition entry",
                    scheme_id=self._scheme.id,
                )
            node = self._next_hop(candidates)
        return node

    def _next_hop(self, candidates: List[EditionAlias]) -> EditionAlias:
        current = [alias for alias in candidates if alias.is_current]
        if current:
            return current[0]
        if len({_normalize(alias.canonical) for alias in candidates}) > 1:
            raise DataIntegrityError(
                f"{self._scheme.id}: edition alias chain forks at {candidates[0].number}",
                scheme_id=self._scheme.id,
            )
        return candidates[0]

    def is_superseded(self, number: str) -> bool:
        """True when ``number`` only appears as a superseded alias."""
        aliases = self._by_number.get(_normalize(number))
        return bool(aliases) and not any(alias.is_current for alias in aliases)

    def current_for(self, number: str) -> Optional[str]:
        """Canonical number that replaced ``number``, if it is superseded."""
        aliases = self._by_number.get(_normalize(number))
        if not aliases or any(alias.is_current for alias in aliases):
            return None
        return self.follow(aliases[0]).canonical

    def validate(self) -> List[DataIntegrityError]:
        """Check every alias chain of the scheme."""
        errors: List[DataIntegrityError] = []

        for number, aliases in self._by_number.items():
            canonicals = {_normalize(a.canonical) for a in aliases if a.is_current}
            if len(canonicals) > 1:
                errors.append(DataIntegrityError(
                    f"{self._scheme.id}: {aliases[0].number} is current with different "
                    f"canonical numbers",
                    scheme_id=self._scheme.id,
                ))

        for alias in self._scheme.editions:
            if alias.is_current:
                continue
            try:
                self.follow(alias)
            except DataIntegrityError as e:
                errors.append(e)

        return errors

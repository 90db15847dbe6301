"""Sort key generation and catalog ordering."""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..domain.result import DataIntegrityError
from ..domain.scheme import CatalogScheme
from ..domain.value_objects import (
    CatalogNumber,
    GroupValue,
    SortComponent,
    SortKey,
    SortKeyType,
)
from .parser import NumberParser

logger = logging.getLogger(__name__)


class SortKeyGenerator:
    """Turns captured groups into totally ordered keys."""

    def generate(self, scheme: CatalogScheme,
                 groups: Sequence[Optional[GroupValue]]) -> SortKey:
        """Build the key for captured ``groups`` (index 0 is capture group 1).

        Absent groups become a placeholder that sorts before any present
        value, so "812" < "812a". String components compare case-insensitively.
        """
        components = []
        for spec in scheme.sort_keys:
            value = groups[spec.group - 1] if spec.group <= len(groups) else None
            if value is None or value == "":
                components.append(SortComponent.absent(spec.type))
            elif spec.type is SortKeyType.STR:
                components.append(SortComponent.present(str(value).lower()))
            else:
                components.append(SortComponent.present(int(value)))
        return SortKey(tuple(components), scheme.key_types)

    def for_number(self, scheme: CatalogScheme, number: CatalogNumber) -> SortKey:
        return self.generate(scheme, number.groups)

    def group_prefix(self, scheme: CatalogScheme, key: SortKey) -> Tuple[SortComponent, ...]:
        """Leading component(s) shared by every member of a group.

        For "2/1" and "2/2" under an opus scheme this is the component ``2``.
        """
        return key.prefix(scheme.group_depth)

    @staticmethod
    def compare(a: SortKey, b: SortKey) -> int:
        if a < b:
            return -1
        if a > b:
            return 1
        return 0


def sort_numbers(scheme: CatalogScheme, numbers: Iterable[str],
                 parser: Optional[NumberParser] = None,
                 generator: Optional[SortKeyGenerator] = None) -> Tuple[List[str], List[str]]:
    """Sort raw numbers in catalog order.

    Returns:
        (sorted numbers that parsed, numbers that did not parse in input order)
    """
    parser = parser or NumberParser()
    generator = generator or SortKeyGenerator()

    keyed: List[Tuple[SortKey, str]] = []
    rejected: List[str] = []
    for raw in numbers:
        result = parser.parse(scheme, raw)
        if result.is_failure():
            logger.debug(f"Cannot sort '{raw}': {result.error()}")
            rejected.append(raw)
            continue
        keyed.append((generator.for_number(scheme, result.value()), result.value().raw))

    keyed.sort()
    return [raw for _, raw in keyed], rejected


def find_collisions(scheme: CatalogScheme,
                    entries: Iterable[Tuple[CatalogNumber, str]],
                    generator: Optional[SortKeyGenerator] = None) -> List[DataIntegrityError]:
    """Report sort keys shared by distinct compositions.

    Args:
        scheme: Scheme the numbers belong to
        entries: (parsed number, composition id) pairs

    Returns:
        One DataIntegrityError per colliding key
    """
    generator = generator or SortKeyGenerator()
    by_key: Dict[SortKey, Dict[str, Set[str]]] = defaultdict(lambda: defaultdict(set))

    for number, composition_id in entries:
        by_key[generator.for_number(scheme, number)][composition_id].add(number.raw)

    errors = []
    for key, owners in by_key.items():
        if len(owners) > 1:
            numbers = sorted(n for raws in owners.values() for n in raws)
            errors.append(DataIntegrityError(
                f"{scheme.id}: numbers {', '.join(numbers)} share sort key {key} "
                f"across compositions {', '.join(sorted(owners))}",
                scheme_id=scheme.id,
            ))
    return errors

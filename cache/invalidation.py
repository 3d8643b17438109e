from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping

import structlog

from monitoring.cache_metrics import UNMAPPED_INVALIDATION_SUBJECTS

logger = structlog.get_logger()

KEY_DELIMITER = ':'


class InvalidationMap:
    """
    Static table from a write subject to the cache-key prefixes it purges.

    Built once at startup and read-only afterwards. Lookups are exact and
    case-sensitive; an unknown subject purges nothing and is reported as a
    configuration gap instead of an error.
    """

    def __init__(self, rules: Mapping[str, Iterable[str]]):
        table = {}
        for subject, prefixes in rules.items():
            if not isinstance(subject, str) or not subject:
                raise ValueError(f"invalid invalidation subject: {subject!r}")
            if isinstance(prefixes, str):
                raise ValueError(f"prefixes for {subject!r} must be a collection, not a string")
            frozen = frozenset(prefixes)
            for prefix in frozen:
                if not isinstance(prefix, str) or len(prefix) < 2 or not prefix.endswith(KEY_DELIMITER):
                    raise ValueError(
                        f"invalid prefix {prefix!r} for {subject!r}: "
                        f"must be a request type name followed by {KEY_DELIMITER!r}"
                    )
            table[subject] = frozen
        self._rules: Mapping[str, FrozenSet[str]] = MappingProxyType(table)

    def affected_prefixes(self, subject: str) -> FrozenSet[str]:
        prefixes = self._rules.get(subject)
        if prefixes is None:
            logger.warning("invalidation_subject_unmapped", subject=subject)
            UNMAPPED_INVALIDATION_SUBJECTS.labels(subject=subject).inc()
            return frozenset()
        return prefixes

    def subjects(self) -> FrozenSet[str]:
        return frozenset(self._rules)

    def prefixes(self) -> FrozenSet[str]:
        """Every prefix purged by at least one subject."""
        return frozenset().union(*self._rules.values())

    def __contains__(self, subject: object) -> bool:
        return subject in self._rules

    def __repr__(self) -> str:
        return f"InvalidationMap({dict(self._rules)!r})"

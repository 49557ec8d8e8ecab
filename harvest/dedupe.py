"""
Per-locale accumulator of unique product ids seen across collections.
"""

from typing import Dict, FrozenSet, Iterable, Iterator, List, Set, Tuple

from schemas.catalog import Locale


class LocaleDedupeSet:
    """
    Mapping of locale -> unique product ids.

    Written only by the runner's coordinating coroutine during the
    availability phase, read during the detail phase. Ids are never removed.
    """

    def __init__(self, locales: Iterable[Locale] = ()):
        self._ids: Dict[Locale, Set[str]] = {locale: set() for locale in locales}

    def merge(self, locale: Locale, item_ids: Iterable[str]) -> int:
        """Add ids observed for ``locale``; returns how many were new"""
        known = self._ids.setdefault(locale, set())
        before = len(known)
        known.update(item_ids)
        return len(known) - before

    def get(self, locale: Locale) -> FrozenSet[str]:
        return frozenset(self._ids.get(locale, ()))

    def __getitem__(self, locale: Locale) -> FrozenSet[str]:
        return self.get(locale)

    def __contains__(self, locale: Locale) -> bool:
        return locale in self._ids

    def __iter__(self) -> Iterator[Locale]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def non_empty(self) -> List[Tuple[Locale, FrozenSet[str]]]:
        """Locales with at least one id, in insertion order"""
        return [(locale, frozenset(ids)) for locale, ids in self._ids.items() if ids]

    def total(self) -> int:
        return sum(len(ids) for ids in self._ids.values())

    def counts(self) -> Dict[str, int]:
        return {locale.code: len(ids) for locale, ids in self._ids.items()}

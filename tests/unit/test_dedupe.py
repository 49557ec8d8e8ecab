"""
Unit tests for the per-locale dedupe set
"""

from harvest.dedupe import LocaleDedupeSet
from schemas.catalog import Locale

EN_US = Locale.parse("en-US")
FR_FR = Locale.parse("fr-FR")


class TestLocaleDedupeSet:

    def test_merge_unions_collections_of_one_locale(self):
        dedupe = LocaleDedupeSet([EN_US])
        inputs = [["1", "2"], ["2", "3"], ["3", "3", "4"]]

        for ids in inputs:
            dedupe.merge(EN_US, ids)

        merged = dedupe[EN_US]
        assert merged == {"1", "2", "3", "4"}
        assert len(merged) <= sum(len(ids) for ids in inputs)
        assert all(x in merged for ids in inputs for x in ids)

    def test_merge_reports_new_ids(self):
        dedupe = LocaleDedupeSet()

        assert dedupe.merge(EN_US, ["1", "2"]) == 2
        assert dedupe.merge(EN_US, ["2", "3"]) == 1

    def test_locales_are_kept_apart(self):
        dedupe = LocaleDedupeSet([EN_US, FR_FR])
        dedupe.merge(EN_US, ["1"])
        dedupe.merge(FR_FR, ["2"])

        assert dedupe[EN_US] == {"1"}
        assert dedupe[FR_FR] == {"2"}
        assert dedupe.counts() == {"en-US": 1, "fr-FR": 1}

    def test_equal_locales_share_an_entry(self):
        dedupe = LocaleDedupeSet()
        dedupe.merge(Locale(language="en", market="US"), ["1"])
        dedupe.merge(Locale.parse("EN-us"), ["2"])

        assert len(dedupe) == 1
        assert dedupe[EN_US] == {"1", "2"}

    def test_non_empty_skips_locales_without_ids(self):
        dedupe = LocaleDedupeSet([EN_US, FR_FR])
        dedupe.merge(FR_FR, ["9"])

        assert dedupe.non_empty() == [(FR_FR, frozenset({"9"}))]
        assert dedupe.total() == 1

    def test_returned_sets_are_read_only_views(self):
        dedupe = LocaleDedupeSet([EN_US])
        dedupe.merge(EN_US, ["1"])

        snapshot = dedupe[EN_US]
        dedupe.merge(EN_US, ["2"])

        assert snapshot == {"1"}
        assert isinstance(snapshot, frozenset)

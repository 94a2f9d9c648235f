"""Tests for the geo context resolver."""
import pytest

from scheduled_research.pipeline.geo import (
    CountryCode,
    is_strict_context,
    normalize_country,
)


class TestNormalizeCountry:
    """Tests for normalize_country."""

    @pytest.mark.parametrize("raw", ["Saudi Arabia", "saudi-arabia", "KSA", "sa", "  SAUDI_ARABIA "])
    def test_saudi_aliases(self, raw):
        """All spellings of Saudi Arabia resolve to sa."""
        assert normalize_country(raw) == CountryCode.SA

    def test_alias_for_other_country(self):
        assert normalize_country("United Arab Emirates") == CountryCode.AE
        assert normalize_country("uk") == CountryCode.GB

    def test_bare_code_is_accepted(self):
        assert normalize_country("DE") == CountryCode.DE

    @pytest.mark.parametrize("raw", [None, "", "   ", "Atlantis"])
    def test_unknown_input(self, raw):
        """Absent or unmapped input is UNKNOWN, never an error."""
        code = normalize_country(raw)
        assert code == CountryCode.UNKNOWN
        assert not code.is_known


class TestStrictContext:
    """Tests for is_strict_context."""

    def test_saudi_code_is_strict(self):
        assert is_strict_context(CountryCode.SA, "anything")

    def test_keyword_in_query_is_strict(self):
        """Keywords trigger strict mode even without a country."""
        assert is_strict_context(CountryCode.UNKNOWN, "IPO pipeline on Tadawul")
        assert is_strict_context(CountryCode.US, "CMA rulings this quarter")

    def test_keyword_must_be_whole_word(self):
        """'tasting' contains 'tasi' but is not a match."""
        assert not is_strict_context(CountryCode.UNKNOWN, "wine tasting trends")

    def test_other_country_without_keywords(self):
        assert not is_strict_context(CountryCode.DE, "German auto exports")
        assert not is_strict_context(CountryCode.UNKNOWN, None)

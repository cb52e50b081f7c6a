"""
Unit tests for ClinVar significance parsing and entry resolution.
"""
import pytest

from conftest import clin
from json2maf_filters import is_cancer_related, parse_significance, resolve, review_status_tier
from json2maf_types import Significance


class TestParseSignificance:

    @pytest.mark.parametrize("labels,expected", [
        (["pathogenic"], Significance.PATHOGENIC),
        (["Pathogenic"], Significance.PATHOGENIC),
        (["likely pathogenic"], Significance.LIKELY_PATHOGENIC),
        (["pathogenic", "likely pathogenic"], Significance.PATHOGENIC),
        (["Pathogenic/Likely pathogenic"], Significance.PATHOGENIC),
        (["benign"], Significance.BENIGN),
        (["likely benign"], Significance.LIKELY_BENIGN),
        (["Benign/Likely benign"], Significance.BENIGN),
        (["uncertain significance"], Significance.UNCERTAIN),
        (["conflicting interpretations of pathogenicity"], Significance.CONFLICTING),
        (["pathogenic", "benign"], Significance.OTHER),
        (["drug response"], Significance.OTHER),
        ([], Significance.OTHER),
    ])
    def test_labels(self, labels, expected):
        assert parse_significance(labels) is expected


class TestReviewStatusTier:

    def test_ordering(self):
        tiers = [
            review_status_tier("practice guideline"),
            review_status_tier("reviewed by expert panel"),
            review_status_tier("criteria provided, multiple submitters, no conflicts"),
            review_status_tier("criteria provided, conflicting interpretations"),
            review_status_tier("criteria provided, single submitter"),
            review_status_tier("no assertion criteria provided"),
            review_status_tier("no assertion provided"),
        ]
        assert tiers == sorted(tiers, reverse=True)
        assert len(set(tiers)) == len(tiers)

    def test_unknown_and_missing(self):
        assert review_status_tier("something else") == 0
        assert review_status_tier(None) == 0
        assert review_status_tier("") == 0

    def test_case_insensitive(self):
        assert review_status_tier("Reviewed By Expert Panel") == review_status_tier("reviewed by expert panel")


class TestResolve:

    def test_empty_list_resolves_to_none(self):
        assert resolve([]) is None

    def test_pathogenic_beats_likely_pathogenic(self):
        lp = clin(Significance.LIKELY_PATHOGENIC, review_tier=7, id="A")
        p = clin(Significance.PATHOGENIC, review_tier=1, id="B")
        assert resolve([lp, p]).id == "B"

    def test_higher_review_tier_wins(self):
        """Two Pathogenic entries, tier 1 and tier 3 -> tier 3 selected"""
        low = clin(Significance.PATHOGENIC, review_tier=1, id="LOW")
        high = clin(Significance.PATHOGENIC, review_tier=3, id="HIGH")
        assert resolve([low, high]).id == "HIGH"
        assert resolve([high, low]).id == "HIGH"

    def test_likely_pathogenic_tier_tie_break(self):
        """Two Likely pathogenic entries, tiers 1 and 3 -> tier 3 selected"""
        low = clin(Significance.LIKELY_PATHOGENIC, review_tier=1, id="LOW")
        high = clin(Significance.LIKELY_PATHOGENIC, review_tier=3, id="HIGH")
        assert resolve([low, high]).id == "HIGH"

    def test_cancer_related_breaks_tie(self):
        other = clin(Significance.PATHOGENIC, phenotypes=["Cardiomyopathy"], id="CARDIO")
        cancer = clin(Significance.PATHOGENIC, phenotypes=["Hereditary breast and ovarian cancer"], id="HBOC")
        assert resolve([other, cancer]).id == "HBOC"

    def test_first_in_input_order_on_full_tie(self):
        a = clin(Significance.LIKELY_PATHOGENIC, id="FIRST")
        b = clin(Significance.LIKELY_PATHOGENIC, id="SECOND")
        assert resolve([a, b]).id == "FIRST"

    def test_benign_only_resolves_to_benign_entry(self):
        b = clin(Significance.BENIGN, id="BEN")
        assert resolve([b]).significance is Significance.BENIGN

    def test_custom_cancer_keywords(self):
        a = clin(Significance.PATHOGENIC, phenotypes=["Marfan syndrome"], id="MARFAN")
        b = clin(Significance.PATHOGENIC, phenotypes=["Lynch syndrome"], id="LYNCH")
        assert resolve([a, b]).id == "MARFAN"
        assert resolve([a, b], cancer_keywords=("lynch",)).id == "LYNCH"


class TestCancerKeywords:

    def test_matches_substring(self):
        assert is_cancer_related(["Familial adenomatous polyposis; colorectal carcinoma"])

    def test_no_match(self):
        assert not is_cancer_related(["Cystic fibrosis", "not provided"])

"""
Unit tests for the decision engine.
Rule order: ClinVar P -> ClinVar LP -> PrimateAI-3D -> two secondary scores -> excluded.
"""
import pytest

from conftest import clin, make_record
from json2maf_filters import PredictiveSupport, classify, combine, decide, resolve
from json2maf_types import Classification, PredictiveEvidence, QualityOutcome, Reason, Significance


class TestDecide:

    def test_clinvar_pathogenic_without_scores(self, config):
        """ClinVar Pathogenic with no predictive scores -> included as clinvar-pathogenic"""
        entry = clin(Significance.PATHOGENIC)
        verdict = decide(entry, combine(PredictiveEvidence(), config))
        assert verdict.include
        assert verdict.classification is Classification.PATHOGENIC
        assert verdict.reason is Reason.CLINVAR_PATHOGENIC
        assert verdict.clinical is entry

    def test_clinvar_likely_pathogenic(self, config):
        verdict = decide(clin(Significance.LIKELY_PATHOGENIC), combine(PredictiveEvidence(), config))
        assert verdict.include
        assert verdict.classification is Classification.LIKELY_PATHOGENIC
        assert verdict.reason is Reason.CLINVAR_LIKELY_PATHOGENIC

    def test_clinvar_wins_over_predictive(self, config):
        support = combine(PredictiveEvidence(primate_ai=0.95, revel=0.9, dann=0.99), config)
        verdict = decide(clin(Significance.PATHOGENIC), support)
        assert verdict.reason is Reason.CLINVAR_PATHOGENIC

    def test_benign_does_not_block_primate(self, config):
        """ClinVar Benign + PrimateAI-3D above threshold -> included via predictive-primate-only"""
        support = combine(PredictiveEvidence(primate_ai=0.9), config)
        verdict = decide(clin(Significance.BENIGN), support)
        assert verdict.include
        assert verdict.reason is Reason.PREDICTIVE_PRIMATE_ONLY
        assert verdict.clinical is None

    def test_primate_only(self, config):
        """PrimateAI-3D 0.85 vs 0.8, no secondary scores -> Likely pathogenic"""
        verdict = decide(None, combine(PredictiveEvidence(primate_ai=0.85), config))
        assert verdict.include
        assert verdict.classification is Classification.LIKELY_PATHOGENIC
        assert verdict.reason is Reason.PREDICTIVE_PRIMATE_ONLY

    def test_primate_hit_with_secondary_is_still_primate_rule(self, config):
        verdict = decide(None, combine(PredictiveEvidence(primate_ai=0.85, revel=0.9, dann=0.99), config))
        assert verdict.reason is Reason.PREDICTIVE_PRIMATE_ONLY

    def test_dual_support(self, config):
        verdict = decide(None, combine(PredictiveEvidence(primate_ai=0.5, revel=0.8, dann=0.97), config))
        assert verdict.include
        assert verdict.classification is Classification.LIKELY_PATHOGENIC
        assert verdict.reason is Reason.PREDICTIVE_DUAL_SUPPORT

    def test_single_secondary_is_not_enough(self, config):
        verdict = decide(None, combine(PredictiveEvidence(revel=0.9), config))
        assert not verdict.include
        assert verdict.reason is Reason.NO_EVIDENCE

    @pytest.mark.parametrize("significance", [
        Significance.UNCERTAIN, Significance.CONFLICTING, Significance.LIKELY_BENIGN, Significance.OTHER,
    ])
    def test_non_positive_clinvar_falls_through(self, config, significance):
        verdict = decide(clin(significance), combine(PredictiveEvidence(), config))
        assert not verdict.include
        assert verdict.reason is Reason.NO_EVIDENCE

    def test_failed_quality_excludes(self):
        verdict = decide(clin(Significance.PATHOGENIC), PredictiveSupport(2, True),
                         QualityOutcome.DEPTH_FAILED)
        assert not verdict.include
        assert verdict.classification is Classification.EXCLUDED
        assert verdict.reason is Reason.QUALITY_FAIL

    def test_population_failure_reason(self):
        verdict = decide(None, PredictiveSupport(0, False), QualityOutcome.POPULATION_FAILED)
        assert verdict.reason is Reason.POPULATION_FAIL

    def test_out_of_range_primate_includes(self, config):
        verdict = decide(None, combine(PredictiveEvidence(primate_ai=1.7), config))
        assert verdict.reason is Reason.PREDICTIVE_PRIMATE_ONLY

    def test_out_of_range_secondary_scores_give_dual_support(self, config):
        verdict = decide(None, combine(PredictiveEvidence(primate_ai=-3.0, revel=5.0, dann=2.0), config))
        assert verdict.include
        assert verdict.reason is Reason.PREDICTIVE_DUAL_SUPPORT


class TestClassify:

    def test_idempotent(self, config):
        record = make_record(clinical=[clin(Significance.BENIGN), clin(Significance.UNCERTAIN)],
                             primate=0.5, revel=0.8, dann=0.99)
        assert classify(record, config) == classify(record, config)

    def test_resolved_entry_attached(self, config):
        entries = [clin(Significance.UNCERTAIN, id="VUS"), clin(Significance.PATHOGENIC, review_tier=6, id="PATH")]
        record = make_record(clinical=entries)
        quality, verdict = classify(record, config)
        assert quality is QualityOutcome.PASSED
        assert verdict.clinical.id == "PATH"
        assert verdict.clinical == resolve(entries)
        assert "Selected from 2 entries" in verdict.justification

    def test_thresholds_drive_outcome(self, config):
        record = make_record(primate=0.75)
        assert not classify(record, config)[1].include
        loose = type(config)(min_primate_ai_score=0.7)
        assert classify(record, loose)[1].reason is Reason.PREDICTIVE_PRIMATE_ONLY

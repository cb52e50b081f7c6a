# -*- coding: utf-8 -*-
"""
Per-record filters for json2maf.

Quality gate -> ClinVar resolver -> predictive combiner -> decision.

Positive ClinVar evidence (Pathogenic / Likely pathogenic) includes a record
directly. Benign, uncertain or conflicting ClinVar entries never exclude on
their own: such records fall through to the predictive rules.
None of the functions here raise on odd input; scores outside [0, 1] are
compared as-is.
"""
from __future__ import annotations
import logging
import re
from typing import Dict, Iterable, NamedTuple, Optional, Sequence, Tuple

from json2maf_types import (
    CANCER_KEYWORDS,
    REVIEW_STATUS_TIERS,
    Classification,
    ClinicalEntry,
    FilterConfig,
    PredictiveEvidence,
    QualityOutcome,
    Reason,
    Significance,
    VariantRecord,
    Verdict,
)

logger = logging.getLogger("json2maf.filters")

_SIG_SPLIT = re.compile(r"[/,;]")


# ---------------------------
# Quality gate
# ---------------------------
def check_quality(record: VariantRecord, config: FilterConfig) -> QualityOutcome:
    """First failing rule wins; a missing depth, VAF or population AF is not a failure."""
    if record.total_depth is not None and record.total_depth < config.min_total_depth:
        return QualityOutcome.DEPTH_FAILED
    if record.variant_frequency is not None and record.variant_frequency < config.min_variant_frequency:
        return QualityOutcome.VAF_FAILED
    pop_af = record.population_af(config.population, config.population_sources)
    if pop_af is not None and pop_af > config.max_population_af:
        return QualityOutcome.POPULATION_FAILED
    return QualityOutcome.PASSED


def passes(record: VariantRecord, min_depth: int, min_vaf: float, max_pop_af: float,
           population: str = "eas", sources: Sequence[str] = ("gnomad-exome", "oneKg")) -> bool:
    config = FilterConfig(min_total_depth=min_depth, min_variant_frequency=min_vaf,
                          max_population_af=max_pop_af, population=population,
                          population_sources=tuple(sources))
    return check_quality(record, config) is QualityOutcome.PASSED


# ---------------------------
# ClinVar
# ---------------------------
def parse_significance(labels: Iterable[str]) -> Significance:
    sig_lower = ", ".join(str(x) for x in labels).lower()
    if not sig_lower.strip():
        return Significance.OTHER
    if "conflicting" in sig_lower:
        return Significance.CONFLICTING
    parts = [p.strip() for p in _SIG_SPLIT.split(sig_lower)]
    if "pathogenic" in sig_lower and "benign" not in sig_lower and "uncertain" not in sig_lower:
        if any("pathogenic" in p and "likely" not in p for p in parts):
            return Significance.PATHOGENIC
        return Significance.LIKELY_PATHOGENIC
    if "benign" in sig_lower and "pathogenic" not in sig_lower and "uncertain" not in sig_lower:
        if any("benign" in p and "likely" not in p for p in parts):
            return Significance.BENIGN
        return Significance.LIKELY_BENIGN
    if "uncertain" in sig_lower:
        return Significance.UNCERTAIN
    return Significance.OTHER


def review_status_tier(status: Optional[str], tiers=REVIEW_STATUS_TIERS) -> int:
    status_lower = (status or "").lower()
    for phrases, tier in tiers:
        if all(p in status_lower for p in phrases):
            return tier
    return 0


def is_cancer_related(phenotypes: Iterable[str], keywords: Sequence[str] = CANCER_KEYWORDS) -> bool:
    for disease in phenotypes:
        disease_lower = str(disease).lower()
        if any(k in disease_lower for k in keywords):
            return True
    return False


def _significance_rank(sig: Significance) -> int:
    if sig is Significance.PATHOGENIC:
        return 2
    if sig is Significance.LIKELY_PATHOGENIC:
        return 1
    return 0


def resolve(entries: Sequence[ClinicalEntry],
            cancer_keywords: Sequence[str] = CANCER_KEYWORDS) -> Optional[ClinicalEntry]:
    """
    Pick the representative ClinVar entry:
    Pathogenic > Likely pathogenic > rest, then higher review tier,
    then cancer-related disease text, then earliest in input order.
    """
    best = None
    best_key = None
    for entry in entries:
        key = (
            _significance_rank(entry.significance),
            entry.review_tier,
            is_cancer_related(entry.phenotypes, cancer_keywords),
        )
        # strict comparison keeps the first of equal entries
        if best_key is None or key > best_key:
            best, best_key = entry, key
    return best


# ---------------------------
# Predictive scores
# ---------------------------
class PredictiveSupport(NamedTuple):
    support_count: int
    primate_hit: bool
    contributing: Optional[Dict[str, float]] = None
    confidence: float = 0.0


def _confidence(primate_hit: bool, n_supporting: int) -> float:
    if n_supporting == 0:
        return 0.0
    base = 0.7 if primate_hit else 0.5
    return min(1.0, base + (n_supporting - 1) * 0.1)


def combine(evidence: PredictiveEvidence, config: FilterConfig) -> PredictiveSupport:
    contributing: Dict[str, float] = {}

    primate_hit = evidence.primate_ai is not None and evidence.primate_ai >= config.min_primate_ai_score
    if primate_hit:
        contributing["PrimateAI-3D"] = evidence.primate_ai

    support_count = 0
    secondary: Tuple[Tuple[str, Optional[float], float], ...] = (
        ("REVEL", evidence.revel, config.min_revel_score),
        ("DANN", evidence.dann, config.min_dann_score),
    )
    for name, score, threshold in secondary:
        if score is not None and score >= threshold:
            contributing[name] = score
            support_count += 1

    return PredictiveSupport(
        support_count=support_count,
        primate_hit=primate_hit,
        contributing=contributing,
        confidence=_confidence(primate_hit, support_count + int(primate_hit)),
    )


# ---------------------------
# Decision
# ---------------------------
def _clinvar_reason(entry: ClinicalEntry, cancer_keywords: Sequence[str]) -> str:
    parts = []
    if entry.significance_text:
        parts.append(f"ClinVar: {entry.significance_text}")
    else:
        parts.append(f"ClinVar: {entry.significance.value}")
    if entry.review_status:
        parts.append(f"Review: {entry.review_status}")
    if is_cancer_related(entry.phenotypes, cancer_keywords):
        parts.append("Cancer-related disease")
    return "; ".join(parts)


def decide(resolved: Optional[ClinicalEntry], support: PredictiveSupport,
           quality: QualityOutcome = QualityOutcome.PASSED,
           cancer_keywords: Sequence[str] = CANCER_KEYWORDS) -> Verdict:
    if quality is not QualityOutcome.PASSED:
        reason = Reason.POPULATION_FAIL if quality is QualityOutcome.POPULATION_FAILED else Reason.QUALITY_FAIL
        return Verdict(False, Classification.EXCLUDED, reason, f"Failed quality gate ({quality.value})")

    if resolved is not None and resolved.significance is Significance.PATHOGENIC:
        return Verdict(True, Classification.PATHOGENIC, Reason.CLINVAR_PATHOGENIC,
                       _clinvar_reason(resolved, cancer_keywords), resolved)

    if resolved is not None and resolved.significance is Significance.LIKELY_PATHOGENIC:
        return Verdict(True, Classification.LIKELY_PATHOGENIC, Reason.CLINVAR_LIKELY_PATHOGENIC,
                       _clinvar_reason(resolved, cancer_keywords), resolved)

    names = ", ".join(support.contributing or {})
    if support.primate_hit:
        return Verdict(True, Classification.LIKELY_PATHOGENIC, Reason.PREDICTIVE_PRIMATE_ONLY,
                       f"Supported by predictive scores: {names} (confidence: {support.confidence:.2f})")

    if support.support_count >= 2:
        return Verdict(True, Classification.LIKELY_PATHOGENIC, Reason.PREDICTIVE_DUAL_SUPPORT,
                       f"Supported by predictive scores: {names} (confidence: {support.confidence:.2f})")

    return Verdict(False, Classification.EXCLUDED, Reason.NO_EVIDENCE,
                   "Insufficient evidence for pathogenicity")


def classify(record: VariantRecord, config: FilterConfig) -> Tuple[QualityOutcome, Verdict]:
    """Quality gate, resolver, combiner and decision for one record."""
    quality = check_quality(record, config)
    if quality is not QualityOutcome.PASSED:
        return quality, decide(None, PredictiveSupport(0, False), quality)
    resolved = resolve(record.clinical, config.cancer_keywords)
    support = combine(record.evidence, config)
    verdict = decide(resolved, support, quality, config.cancer_keywords)
    if len(record.clinical) > 1 and verdict.clinical is not None:
        verdict = Verdict(verdict.include, verdict.classification, verdict.reason,
                          f"{verdict.justification}; Selected from {len(record.clinical)} entries",
                          verdict.clinical)
    logger.debug("%s:%s %s>%s -> %s (%s)", record.chrom, record.start, record.ref, record.alt,
                 verdict.reason.value, verdict.justification)
    return quality, verdict

# -*- coding: utf-8 -*-
"""
json2maf data model

- FilterConfig: frozen thresholds and lookup tables for one run
- ClinicalEntry / PredictiveEvidence / VariantRecord: immutable input records
- Verdict: outcome of the decision engine
- StatTally: per-chunk counters, combined by element-wise addition
"""
from __future__ import annotations
from dataclasses import dataclass, field, fields, asdict
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple


class ConfigError(ValueError):
    """Invalid threshold or run option."""


# ---------------------------
# Defaults & lookup tables
# ---------------------------
CANCER_KEYWORDS = (
    "cancer",
    "carcinoma",
    "tumor",
    "tumour",
    "malignant",
    "neoplasm",
    "lymphoma",
    "leukemia",
    "leukaemia",
    "sarcoma",
    "melanoma",
    "glioma",
    "blastoma",
    "myeloma",
    "adenocarcinoma",
)

# (phrases that must all occur in the lower-cased status, tier); first match wins
REVIEW_STATUS_TIERS = (
    (("practice guideline",), 7),
    (("reviewed by expert panel",), 6),
    (("multiple submitters", "no conflict"), 5),
    (("conflicting",), 4),
    (("single submitter",), 3),
    (("no assertion criteria provided",), 2),
    (("no assertion provided",), 1),
)

DEFAULT_THRESHOLDS = {
    "min_total_depth": 30,
    "min_variant_frequency": 0.03,
    "max_population_af": 0.01,
    "population": "eas",
    "population_sources": ["gnomad-exome", "oneKg"],
    "min_primate_ai_score": 0.8,
    "min_revel_score": 0.75,
    "min_dann_score": 0.96,
}


@dataclass(frozen=True)
class FilterConfig:
    min_total_depth: int = 30
    min_variant_frequency: float = 0.03
    max_population_af: float = 0.01
    population: str = "eas"
    population_sources: Tuple[str, ...] = ("gnomad-exome", "oneKg")

    # score A (primary), score B, score C
    min_primate_ai_score: float = 0.8
    min_revel_score: float = 0.75
    min_dann_score: float = 0.96

    cancer_keywords: Tuple[str, ...] = CANCER_KEYWORDS
    review_status_tiers: Tuple[Tuple[Tuple[str, ...], int], ...] = REVIEW_STATUS_TIERS

    def validate(self) -> None:
        if self.min_total_depth < 1:
            raise ConfigError(f"min_total_depth must be at least 1, got {self.min_total_depth}")
        for name in ("min_variant_frequency", "max_population_af", "min_revel_score",
                     "min_primate_ai_score", "min_dann_score"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be between 0 and 1, got {value}")
        if not self.population_sources:
            raise ConfigError("population_sources must name at least one source")

    @classmethod
    def from_dict(cls, values: Dict) -> "FilterConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        kwargs = dict(values)
        if "population_sources" in kwargs:
            kwargs["population_sources"] = tuple(kwargs["population_sources"])
        if "cancer_keywords" in kwargs:
            kwargs["cancer_keywords"] = tuple(str(k).lower() for k in kwargs["cancer_keywords"])
        if "review_status_tiers" in kwargs:
            kwargs["review_status_tiers"] = tuple(
                (tuple(str(p).lower() for p in phrases), int(tier))
                for phrases, tier in kwargs["review_status_tiers"]
            )
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ConfigError(str(e)) from e


# ---------------------------
# Enumerations
# ---------------------------
class Significance(Enum):
    PATHOGENIC = "Pathogenic"
    LIKELY_PATHOGENIC = "Likely pathogenic"
    BENIGN = "Benign"
    LIKELY_BENIGN = "Likely benign"
    UNCERTAIN = "Uncertain significance"
    CONFLICTING = "Conflicting"
    OTHER = "Other"


class Classification(Enum):
    PATHOGENIC = "Pathogenic"
    LIKELY_PATHOGENIC = "Likely pathogenic"
    EXCLUDED = "Excluded"


class Reason(Enum):
    CLINVAR_PATHOGENIC = "clinvar-pathogenic"
    CLINVAR_LIKELY_PATHOGENIC = "clinvar-likely-pathogenic"
    PREDICTIVE_DUAL_SUPPORT = "predictive-dual-support"
    PREDICTIVE_PRIMATE_ONLY = "predictive-primate-only"
    QUALITY_FAIL = "quality-fail"
    POPULATION_FAIL = "population-fail"
    NO_EVIDENCE = "no-evidence"


class QualityOutcome(Enum):
    PASSED = "passed"
    DEPTH_FAILED = "depth-failed"
    VAF_FAILED = "vaf-failed"
    POPULATION_FAILED = "population-failed"


# ---------------------------
# Data model
# ---------------------------
@dataclass(frozen=True)
class ClinicalEntry:
    significance: Significance
    review_status: str = ""
    review_tier: int = 0
    phenotypes: Tuple[str, ...] = ()
    id: str = ""
    significance_text: str = ""
    last_evaluated: str = ""

    @property
    def disease(self) -> str:
        return "; ".join(self.phenotypes)


@dataclass(frozen=True)
class PredictiveEvidence:
    """Absent scores are None, never 0."""
    primate_ai: Optional[float] = None
    revel: Optional[float] = None
    dann: Optional[float] = None


@dataclass(frozen=True)
class TranscriptAnnotation:
    id: str = ""
    source: str = ""
    hgnc: str = ""
    consequence: Tuple[str, ...] = ()
    impact: str = ""
    amino_acids: str = ""
    cdna_pos: str = ""
    cds_pos: str = ""
    exons: str = ""
    codons: str = ""
    protein_pos: str = ""
    hgvsc: str = ""
    hgvsp: str = ""
    is_canonical: bool = False
    is_mane_select: bool = False


@dataclass(frozen=True)
class VariantRecord:
    index: int
    chrom: str
    start: int
    end: int
    ref: str
    alt: str
    variant_type: str = ""

    transcripts: Tuple[TranscriptAnnotation, ...] = ()

    total_depth: Optional[int] = None
    variant_frequency: Optional[float] = None

    # source -> population -> allele frequency
    population_frequencies: Mapping[str, Mapping[str, float]] = field(default_factory=dict, hash=False)

    clinical: Tuple[ClinicalEntry, ...] = ()
    evidence: PredictiveEvidence = PredictiveEvidence()

    dbsnp_ids: Tuple[str, ...] = ()
    cosmic_ids: Tuple[str, ...] = ()

    def __post_init__(self):
        # nested read-only views
        object.__setattr__(self, "population_frequencies", MappingProxyType({
            source: MappingProxyType(dict(pops)) for source, pops in self.population_frequencies.items()
        }))

    def population_af(self, population: str, sources) -> Optional[float]:
        for source in sources:
            af = self.population_frequencies.get(source, {}).get(population)
            if af is not None:
                return af
        return None


@dataclass(frozen=True)
class Verdict:
    include: bool
    classification: Classification
    reason: Reason
    justification: str = ""
    clinical: Optional[ClinicalEntry] = None


# ---------------------------
# Statistics
# ---------------------------
@dataclass
class StatTally:
    quality_passed: int = 0
    depth_failed: int = 0
    vaf_failed: int = 0
    population_failed: int = 0
    clinvar_pathogenic: int = 0
    clinvar_likely_pathogenic: int = 0
    predictive_supported: int = 0
    predictive_primate_only: int = 0
    predictive_dual: int = 0
    included: int = 0
    excluded: int = 0

    def __add__(self, other: "StatTally") -> "StatTally":
        if not isinstance(other, StatTally):
            return NotImplemented
        return StatTally(**{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)})

    def merge(self, other: "StatTally") -> None:
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    def record(self, outcome: QualityOutcome, verdict: Verdict) -> None:
        if outcome is QualityOutcome.DEPTH_FAILED:
            self.depth_failed += 1
            return
        if outcome is QualityOutcome.VAF_FAILED:
            self.vaf_failed += 1
            return
        if outcome is QualityOutcome.POPULATION_FAILED:
            self.population_failed += 1
            return

        self.quality_passed += 1
        if not verdict.include:
            self.excluded += 1
            return
        self.included += 1
        if verdict.reason is Reason.CLINVAR_PATHOGENIC:
            self.clinvar_pathogenic += 1
        elif verdict.reason is Reason.CLINVAR_LIKELY_PATHOGENIC:
            self.clinvar_likely_pathogenic += 1
        else:
            self.predictive_supported += 1
            if verdict.reason is Reason.PREDICTIVE_PRIMATE_ONLY:
                self.predictive_primate_only += 1
            else:
                self.predictive_dual += 1

    @property
    def no_evidence(self) -> int:
        return self.excluded

    @property
    def total(self) -> int:
        return self.quality_passed + self.depth_failed + self.vaf_failed + self.population_failed

    def conservation_errors(self, size: int) -> List[str]:
        errors = []
        for f in fields(self):
            if getattr(self, f.name) < 0:
                errors.append(f"{f.name} is negative")
        if self.total != size:
            errors.append(f"quality counters sum to {self.total}, expected {size}")
        decided = (self.clinvar_pathogenic + self.clinvar_likely_pathogenic
                   + self.predictive_supported + self.no_evidence)
        if decided != self.quality_passed:
            errors.append(f"decision counters sum to {decided}, expected {self.quality_passed}")
        if self.predictive_primate_only + self.predictive_dual != self.predictive_supported:
            errors.append("predictive sub-counters do not add up")
        return errors

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)

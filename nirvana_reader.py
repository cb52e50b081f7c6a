# -*- coding: utf-8 -*-
"""
Nirvana JSON reader.

Turns an annotated Nirvana JSON document (gzip or plain) into an ordered list
of VariantRecord. Only the first variant of each position is used, positions
without variants are skipped and positions whose FILTER is not PASS are never
emitted. Emitted records are numbered 0..n-1 in input order.
"""
from __future__ import annotations
import gzip
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from json2maf_filters import parse_significance, review_status_tier
from json2maf_types import (
    ClinicalEntry,
    FilterConfig,
    PredictiveEvidence,
    TranscriptAnnotation,
    VariantRecord,
)

logger = logging.getLogger("json2maf.reader")

POPULATION_SOURCES = ("gnomad", "gnomad-exome", "oneKg")


class NirvanaParseError(ValueError):
    """Input is not a usable Nirvana JSON document."""


@dataclass
class NirvanaHeader:
    annotator: str = ""
    creation_time: str = ""
    genome_assembly: str = ""
    schema_version: Optional[int] = None
    data_sources: List[Dict[str, Any]] = field(default_factory=list)
    samples: List[str] = field(default_factory=list)


# ---------------------------
# Small helpers
# ---------------------------
def open_text(path: str):
    if path.endswith(".gz") or path.endswith(".bgz"):
        return gzip.open(path, "rt", encoding="utf-8")
    return open(path, "rt", encoding="utf-8")


def try_float(x) -> Optional[float]:
    if x is None or isinstance(x, bool):
        return None
    try:
        return float(x)
    except (TypeError, ValueError):
        return None


def try_int(x) -> Optional[int]:
    if x is None or isinstance(x, bool):
        return None
    try:
        return int(x)
    except (TypeError, ValueError):
        f = try_float(x)
        return int(f) if f is not None and f.is_integer() else None


def _str(x) -> str:
    return "" if x is None else str(x)


def _first(seq):
    if isinstance(seq, list) and seq:
        return seq[0]
    return None


# ---------------------------
# Field extraction
# ---------------------------
def parse_header(raw: Dict[str, Any]) -> NirvanaHeader:
    return NirvanaHeader(
        annotator=_str(raw.get("annotator")),
        creation_time=_str(raw.get("creationTime")),
        genome_assembly=_str(raw.get("genomeAssembly")),
        schema_version=try_int(raw.get("schemaVersion")),
        data_sources=list(raw.get("dataSources") or []),
        samples=[_str(s) for s in (raw.get("samples") or [])],
    )


def parse_transcript(raw: Dict[str, Any]) -> TranscriptAnnotation:
    return TranscriptAnnotation(
        id=_str(raw.get("transcript")),
        source=_str(raw.get("source")),
        hgnc=_str(raw.get("hgnc")),
        consequence=tuple(_str(c) for c in (raw.get("consequence") or [])),
        impact=_str(raw.get("impact")),
        amino_acids=_str(raw.get("aminoAcids")),
        cdna_pos=_str(raw.get("cdnaPos")),
        cds_pos=_str(raw.get("cdsPos")),
        exons=_str(raw.get("exons")),
        codons=_str(raw.get("codons")),
        protein_pos=_str(raw.get("proteinPos")),
        hgvsc=_str(raw.get("hgvsc")),
        hgvsp=_str(raw.get("hgvsp")),
        is_canonical=raw.get("isCanonical") is True,
        is_mane_select=raw.get("isManeSelect") is True,
    )


def parse_clinvar_entry(raw: Dict[str, Any], config: FilterConfig) -> ClinicalEntry:
    labels = raw.get("significance") or []
    if isinstance(labels, str):
        labels = [labels]
    review = _str(raw.get("reviewStatus"))
    return ClinicalEntry(
        significance=parse_significance(labels),
        review_status=review,
        review_tier=review_status_tier(review, config.review_status_tiers),
        phenotypes=tuple(_str(p) for p in (raw.get("phenotypes") or [])),
        id=_str(raw.get("id")),
        significance_text=", ".join(_str(x) for x in labels),
        last_evaluated=_str(raw.get("lastEvaluated")),
    )


def extract_population_frequencies(variant: Dict[str, Any]) -> Dict[str, Dict[str, float]]:
    """source -> {population: AF} for every '<pop>Af' key carrying a number."""
    result: Dict[str, Dict[str, float]] = {}
    for source in POPULATION_SOURCES:
        block = variant.get(source)
        if not isinstance(block, dict):
            continue
        pops = {}
        for key, value in block.items():
            if not key.endswith("Af") or len(key) <= 2:
                continue
            af = try_float(value)
            if af is not None:
                pops[key[:-2]] = af
        result[source] = pops
    return result


def extract_evidence(variant: Dict[str, Any]) -> PredictiveEvidence:
    primate = None
    entry = _first(variant.get("primateAI-3D"))
    if isinstance(entry, dict):
        primate = try_float(entry.get("score"))
    if primate is None:
        entry = _first(variant.get("primateAI"))
        if isinstance(entry, dict):
            primate = try_float(entry.get("scorePercentile"))

    revel = None
    revel_raw = variant.get("revel")
    if isinstance(revel_raw, dict):
        revel = try_float(revel_raw.get("score"))

    return PredictiveEvidence(primate_ai=primate, revel=revel, dann=try_float(variant.get("dannScore")))


def is_pass(filters) -> bool:
    if not filters:
        return True
    return list(filters) == ["PASS"]


def parse_position(pos: Dict[str, Any], index: int, config: FilterConfig) -> VariantRecord:
    chrom = pos.get("chromosome")
    start = try_int(pos.get("position"))
    ref = pos.get("refAllele")
    alt = _first(pos.get("altAlleles"))
    if not chrom or start is None or ref is None or alt is None:
        raise NirvanaParseError(
            f"Position {index} is missing chromosome/position/refAllele/altAlleles: "
            f"{json.dumps(pos)[:300]}"
        )
    variants = pos.get("variants")
    if not isinstance(variants, list) or not variants:
        raise NirvanaParseError(f"Position {index}: variants is not an array")
    variant = variants[0]
    if not isinstance(variant, dict):
        raise NirvanaParseError(f"Position {index}: variant entry is not an object")

    sample = _first(pos.get("samples"))
    depth, vaf = None, None
    if isinstance(sample, dict):
        depth = try_int(sample.get("totalDepth"))
        vaf = try_float(_first(sample.get("variantFrequencies")))

    cosmic_ids = tuple(_str(c.get("id")) for c in (variant.get("cosmic") or [])
                       if isinstance(c, dict) and c.get("id"))

    return VariantRecord(
        index=index,
        chrom=str(chrom),
        start=start,
        end=start + max(len(str(ref)), 1) - 1,
        ref=str(ref),
        alt=str(alt),
        variant_type=_str(variant.get("variantType")),
        transcripts=tuple(parse_transcript(t) for t in (variant.get("transcripts") or [])
                          if isinstance(t, dict)),
        total_depth=depth,
        variant_frequency=vaf,
        population_frequencies=extract_population_frequencies(variant),
        clinical=tuple(parse_clinvar_entry(c, config) for c in (variant.get("clinvar") or [])
                       if isinstance(c, dict)),
        evidence=extract_evidence(variant),
        dbsnp_ids=tuple(_str(x) for x in (variant.get("dbsnp") or [])),
        cosmic_ids=cosmic_ids,
    )


# ---------------------------
# Entry point
# ---------------------------
def parse_nirvana_document(doc: Dict[str, Any],
                           config: Optional[FilterConfig] = None) -> Tuple[NirvanaHeader, List[VariantRecord]]:
    config = config or FilterConfig()
    if not isinstance(doc, dict):
        raise NirvanaParseError("Top-level JSON value is not an object")
    header_raw = doc.get("header")
    if not isinstance(header_raw, dict):
        raise NirvanaParseError("No header found in JSON")
    positions = doc.get("positions")
    if not isinstance(positions, list):
        raise NirvanaParseError("No positions array found in JSON")

    header = parse_header(header_raw)
    records: List[VariantRecord] = []
    skipped_no_variant = 0
    dropped_filter = 0
    for i, pos in enumerate(positions):
        if not isinstance(pos, dict):
            raise NirvanaParseError(f"Position {i} is not an object")
        variants = pos.get("variants")
        if variants is not None and not isinstance(variants, list):
            raise NirvanaParseError(f"Position {i}: variants is not an array")
        if not variants:
            skipped_no_variant += 1
            continue
        if not is_pass(pos.get("filters")):
            dropped_filter += 1
            continue
        records.append(parse_position(pos, len(records), config))

    logger.info("Parsed %d variants (%d positions without variants, %d non-PASS dropped)",
                len(records), skipped_no_variant, dropped_filter)
    return header, records


def read_nirvana(path: str, config: Optional[FilterConfig] = None) -> Tuple[NirvanaHeader, List[VariantRecord]]:
    logger.info("Reading Nirvana JSON from %s", path)
    try:
        with open_text(path) as fh:
            doc = json.load(fh)
    except (json.JSONDecodeError, UnicodeDecodeError, EOFError, gzip.BadGzipFile) as e:
        raise NirvanaParseError(f"Failed to parse JSON from {path}: {e}") from e
    return parse_nirvana_document(doc, config)

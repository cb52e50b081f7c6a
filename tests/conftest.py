"""
Shared fixtures and record builders for the json2maf tests.
"""
import importlib.util
import os

import pytest

from json2maf_types import (
    ClinicalEntry,
    FilterConfig,
    PredictiveEvidence,
    TranscriptAnnotation,
    VariantRecord,
)

SCRIPTS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "scripts")


def make_record(index=0, depth=100, vaf=0.25, eas_af=None, clinical=(), primate=None, revel=None,
                dann=None, chrom="chr17", start=7675088, ref="C", alt="T", transcripts=None, pops=None):
    pops = dict(pops or {})
    if eas_af is not None:
        pops["gnomad-exome"] = {"eas": eas_af, "all": eas_af}
    if transcripts is None:
        transcripts = (TranscriptAnnotation(
            id="NM_000546.6", source="RefSeq", hgnc="TP53", consequence=("missense_variant",),
            impact="moderate", hgvsc="NM_000546.6:c.524G>A", hgvsp="NP_000537.3:p.(Arg175His)",
            is_canonical=True, is_mane_select=True,
        ),)
    return VariantRecord(
        index=index, chrom=chrom, start=start, end=start + len(ref) - 1, ref=ref, alt=alt,
        variant_type="SNV", transcripts=tuple(transcripts), total_depth=depth, variant_frequency=vaf,
        population_frequencies=pops, clinical=tuple(clinical),
        evidence=PredictiveEvidence(primate_ai=primate, revel=revel, dann=dann),
    )


def clin(significance, review_tier=3, phenotypes=("not provided",), id="RCV000000001",
         review_status="criteria provided, single submitter"):
    return ClinicalEntry(significance=significance, review_status=review_status, review_tier=review_tier,
                         phenotypes=tuple(phenotypes), id=id, significance_text=significance.value.lower())


def nirvana_position(chrom="chr1", position=1000, ref="A", alt="G", depth=80, vaf=0.3, filters=("PASS",),
                     clinvar=None, primate=None, revel=None, dann=None, eas_af=None):
    variant = {"variantType": "SNV", "transcripts": []}
    if clinvar is not None:
        variant["clinvar"] = clinvar
    if primate is not None:
        variant["primateAI-3D"] = [{"score": primate}]
    if revel is not None:
        variant["revel"] = {"score": revel}
    if dann is not None:
        variant["dannScore"] = dann
    if eas_af is not None:
        variant["gnomad-exome"] = {"easAf": eas_af, "allAf": eas_af}
    return {
        "chromosome": chrom,
        "position": position,
        "refAllele": ref,
        "altAlleles": [alt],
        "filters": list(filters),
        "samples": [{"totalDepth": depth, "variantFrequencies": [vaf]}],
        "variants": [variant],
    }


def nirvana_doc(positions, sample="S1"):
    return {"header": {"annotator": "Nirvana", "genomeAssembly": "GRCh38", "samples": [sample]},
            "positions": list(positions)}


@pytest.fixture
def config():
    return FilterConfig()


@pytest.fixture(scope="session")
def make_test_json():
    """The synthetic input generator from scripts/."""
    loader_spec = importlib.util.spec_from_file_location("make_test_json", os.path.join(SCRIPTS_DIR, "make_test_json.py"))
    module = importlib.util.module_from_spec(loader_spec)
    loader_spec.loader.exec_module(module)
    return module

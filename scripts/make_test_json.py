"""
make_test_json.py
=================
Generate a synthetic Nirvana JSON(.gz) file for exercising json2maf.

Usage:
    python scripts/make_test_json.py --out test_data/sample.json.gz
    python scripts/make_test_json.py --out big.json.gz --n 100000 --seed 7

Positions are drawn from a fixed set of archetypes (ClinVar pathogenic,
benign with a high PrimateAI-3D score, low depth, common in EAS, ...) so that
every filter branch is hit. Output is deterministic for a given seed.
"""
from __future__ import annotations

import argparse
import gzip
import json
import os
import random
from typing import Any, Dict, List

# ---------------------------------------------------------------------------
# Genes / transcripts used for annotation (hg38-ish coordinates)
# ---------------------------------------------------------------------------
GENES = [
    ("chr17", 7673700, "TP53", "NM_000546.6"),
    ("chr13", 32340300, "BRCA2", "NM_000059.4"),
    ("chr17", 43045700, "BRCA1", "NM_007294.4"),
    ("chr12", 25245300, "KRAS", "NM_004985.5"),
    ("chr7", 55181300, "EGFR", "NM_005228.5"),
    ("chr5", 112838000, "APC", "NM_000038.6"),
    ("chr1", 11794400, "MTHFR", "NM_005957.5"),
    ("chr2", 47403000, "MSH2", "NM_000251.3"),
]

BASES = "ACGT"

ARCHETYPES = [
    "clinvar_pathogenic",
    "clinvar_likely_pathogenic",
    "benign_primate_high",
    "dual_support",
    "no_evidence",
    "low_depth",
    "low_vaf",
    "common_eas",
    "non_pass",
    "no_variant",
]


def _clinvar(rng: random.Random, significance: List[str], review: str, disease: str) -> Dict[str, Any]:
    return {
        "id": f"RCV{rng.randint(100000, 999999):09d}",
        "reviewStatus": review,
        "significance": significance,
        "phenotypes": [disease],
        "lastEvaluated": "2023-06-01",
    }


def _transcript(rng: random.Random, gene: str, transcript: str, start: int) -> Dict[str, Any]:
    protein_pos = rng.randint(10, 900)
    return {
        "transcript": transcript,
        "source": "RefSeq",
        "hgnc": gene,
        "consequence": ["missense_variant"],
        "impact": "moderate",
        "aminoAcids": "R/H",
        "cdnaPos": str(protein_pos * 3 + 100),
        "cdsPos": str(protein_pos * 3),
        "exons": f"{rng.randint(1, 20)}/27",
        "codons": "cGc/cAc",
        "proteinPos": str(protein_pos),
        "hgvsc": f"{transcript}:c.{protein_pos * 3}G>A",
        "hgvsp": f"NP_{start % 100000:06d}.1:p.(Arg{protein_pos}His)",
        "isCanonical": True,
        "isManeSelect": True,
    }


def make_position(rng: random.Random, archetype: str, offset: int) -> Dict[str, Any]:
    chrom, base_pos, gene, transcript = rng.choice(GENES)
    start = base_pos + offset
    ref = rng.choice(BASES)
    alt = rng.choice([b for b in BASES if b != ref])

    depth = rng.randint(40, 400)
    vaf = round(rng.uniform(0.05, 0.6), 4)
    eas_af = round(rng.uniform(0.0, 0.005), 6)
    variant: Dict[str, Any] = {
        "vid": f"{chrom[3:]}-{start}-{ref}-{alt}",
        "chromosome": chrom,
        "begin": start,
        "end": start,
        "refAllele": ref,
        "altAllele": alt,
        "variantType": "SNV",
        "dbsnp": [f"rs{rng.randint(1000, 99999999)}"],
        "transcripts": [_transcript(rng, gene, transcript, start)],
        "gnomad-exome": {"allAf": round(eas_af / 2, 6), "easAf": eas_af},
        "dannScore": round(rng.uniform(0.3, 0.9), 4),
        "revel": {"score": round(rng.uniform(0.1, 0.6), 4)},
        "primateAI-3D": [{"score": round(rng.uniform(0.1, 0.7), 4)}],
    }
    filters = ["PASS"]

    if archetype == "clinvar_pathogenic":
        variant["clinvar"] = [
            _clinvar(rng, ["uncertain significance"], "criteria provided, single submitter", "not provided"),
            _clinvar(rng, ["pathogenic"], "reviewed by expert panel", "Hereditary cancer-predisposing syndrome"),
        ]
    elif archetype == "clinvar_likely_pathogenic":
        variant["clinvar"] = [
            _clinvar(rng, ["likely pathogenic"], "criteria provided, single submitter", "Lynch syndrome"),
        ]
    elif archetype == "benign_primate_high":
        variant["clinvar"] = [_clinvar(rng, ["benign"], "criteria provided, single submitter", "not specified")]
        variant["primateAI-3D"] = [{"score": round(rng.uniform(0.85, 0.99), 4)}]
    elif archetype == "dual_support":
        variant["revel"] = {"score": round(rng.uniform(0.8, 0.99), 4)}
        variant["dannScore"] = round(rng.uniform(0.97, 0.999), 4)
    elif archetype == "low_depth":
        depth = rng.randint(5, 29)
        variant["clinvar"] = [_clinvar(rng, ["pathogenic"], "reviewed by expert panel", "Li-Fraumeni syndrome")]
    elif archetype == "low_vaf":
        vaf = round(rng.uniform(0.001, 0.029), 4)
    elif archetype == "common_eas":
        variant["gnomad-exome"] = {"allAf": 0.05, "easAf": round(rng.uniform(0.02, 0.3), 6)}
    elif archetype == "non_pass":
        filters = ["LowQual"]
    elif archetype == "no_variant":
        variant = {}

    return {
        "chromosome": chrom,
        "position": start,
        "refAllele": ref,
        "altAlleles": [alt],
        "filters": filters,
        "samples": [{"genotype": "0/1", "totalDepth": depth, "variantFrequencies": [vaf]}],
        "variants": [variant] if variant else [],
    }


def make_document(n: int, seed: int = 42, sample: str = "TUMOR_01") -> Dict[str, Any]:
    rng = random.Random(seed)
    positions = [make_position(rng, rng.choice(ARCHETYPES), i * 7) for i in range(n)]
    return {
        "header": {
            "annotator": "Nirvana 3.18.1",
            "creationTime": "2024-01-01 00:00:00",
            "genomeAssembly": "GRCh38",
            "schemaVersion": 6,
            "dataSources": [{"name": "ClinVar", "version": "20231230"}],
            "samples": [sample],
        },
        "positions": positions,
    }


def write_document(doc: Dict[str, Any], path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    if path.endswith(".gz"):
        with gzip.open(path, "wt", encoding="utf-8") as fh:
            json.dump(doc, fh)
    else:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(doc, fh)


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a synthetic Nirvana JSON file")
    parser.add_argument("--out", default="test_data/sample.json.gz", help="Output path (.json or .json.gz)")
    parser.add_argument("--n", type=int, default=1000, help="Number of positions")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--sample", default="TUMOR_01", help="Sample name written to the header")
    args = parser.parse_args()

    doc = make_document(args.n, seed=args.seed, sample=args.sample)
    write_document(doc, args.out)
    print(f"Wrote {args.n} positions to {args.out}")


if __name__ == "__main__":
    main()

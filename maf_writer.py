# -*- coding: utf-8 -*-
"""
MAF output for json2maf.

variant_to_maf() flattens an included (VariantRecord, Verdict) pair into one
MAF row of strings; write_maf() / merge_maf_files() write tab-separated
tables with pandas.
"""
from __future__ import annotations
import logging
import os
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from json2maf_types import Reason, TranscriptAnnotation, VariantRecord, Verdict

logger = logging.getLogger("json2maf.writer")

MAF_COLUMNS = [
    "Hugo_Symbol", "Chromosome", "Start_Position", "End_Position", "Strand",
    "Variant_Classification", "Variant_Type", "Reference_Allele",
    "Tumor_Seq_Allele1", "Tumor_Seq_Allele2", "Tumor_Sample_Barcode",
    "HGVSc", "HGVSp", "HGVSp_Short", "Transcript_ID", "Exon", "Consequence",
    "IMPACT", "Codons", "Amino_Acids", "cDNA_position", "CDS_position",
    "Protein_position", "dbSNP_RS", "dbSNP_Val_Status", "COSMIC_ID",
    "ClinVar_ID", "ClinVar_Review_Status", "ClinVar_Significance", "ClinVar_Disease",
    "PrimateAI_Score", "DANN_Score", "REVEL_Score", "gnomAD_AF", "gnomAD_EAS_AF",
    "Depth", "VAF", "Pathogenicity_Class", "Evidence",
]

# first matching substring wins, checked per consequence term in listed order
VARIANT_CLASSIFICATION_MAP = [
    ("missense", "Missense_Mutation"),
    ("nonsense", "Nonsense_Mutation"),
    ("stop_gained", "Nonsense_Mutation"),
    ("frameshift", "Frame_Shift_Del"),
    ("splice_acceptor", "Splice_Site"),
    ("splice_donor", "Splice_Site"),
    ("inframe_deletion", "In_Frame_Del"),
    ("inframe_insertion", "In_Frame_Ins"),
    ("start_lost", "Translation_Start_Site"),
    ("stop_lost", "Nonstop_Mutation"),
    ("synonymous", "Silent"),
    ("5_prime_utr", "5'UTR"),
    ("3_prime_utr", "3'UTR"),
    ("intron", "Intron"),
]

VARIANT_TYPE_MAP = {
    "SNV": "SNP",
    "insertion": "INS",
    "deletion": "DEL",
    "MNV": "DNP",
}

AA_THREE_TO_ONE = [
    ("Ala", "A"), ("Arg", "R"), ("Asn", "N"), ("Asp", "D"), ("Cys", "C"),
    ("Gln", "Q"), ("Glu", "E"), ("Gly", "G"), ("His", "H"), ("Ile", "I"),
    ("Leu", "L"), ("Lys", "K"), ("Met", "M"), ("Phe", "F"), ("Pro", "P"),
    ("Ser", "S"), ("Thr", "T"), ("Trp", "W"), ("Tyr", "Y"), ("Val", "V"),
    ("Ter", "*"),
]

CLINVAR_REASONS = (Reason.CLINVAR_PATHOGENIC, Reason.CLINVAR_LIKELY_PATHOGENIC)


# ---------------------------
# Field mapping
# ---------------------------
def fmt_float(value: Optional[float], digits: int) -> str:
    if value is None:
        return ""
    return f"{value:.{digits}f}"


def select_canonical_transcript(transcripts: Sequence[TranscriptAnnotation]) -> Optional[TranscriptAnnotation]:
    for t in transcripts:
        if t.is_mane_select:
            return t
    return transcripts[0] if transcripts else None


def map_variant_classification(consequences: Iterable[str]) -> str:
    for consequence in consequences:
        c = consequence.lower()
        for needle, label in VARIANT_CLASSIFICATION_MAP:
            if needle in c:
                return label
    return ""


def map_variant_type(variant_type: str) -> str:
    return VARIANT_TYPE_MAP.get(variant_type, variant_type)


def shorten_hgvsp(hgvsp: str) -> str:
    for three, one in AA_THREE_TO_ONE:
        hgvsp = hgvsp.replace(three, one)
    return hgvsp


def extract_hgvs_notation(t: Optional[TranscriptAnnotation]) -> Tuple[str, str, str]:
    if t is None:
        return "", "", ""
    hgvsp = t.hgvsp
    if ":p." in hgvsp:
        short = shorten_hgvsp(hgvsp[hgvsp.index(":p.") + 1:])
    elif hgvsp.startswith("p."):
        short = shorten_hgvsp(hgvsp)
    else:
        short = hgvsp
    return t.hgvsc, hgvsp, short


def variant_to_maf(record: VariantRecord, verdict: Verdict, sample: str = "") -> Dict[str, str]:
    t = select_canonical_transcript(record.transcripts)
    hgvsc, hgvsp, hgvsp_short = extract_hgvs_notation(t)

    clin = verdict.clinical if verdict.reason in CLINVAR_REASONS else None
    gnomad_exome = record.population_frequencies.get("gnomad-exome", {})

    return {
        "Hugo_Symbol": t.hgnc if t else "",
        "Chromosome": record.chrom,
        "Start_Position": str(record.start),
        "End_Position": str(record.end),
        "Strand": "+",
        "Variant_Classification": map_variant_classification(t.consequence) if t else "",
        "Variant_Type": map_variant_type(record.variant_type),
        "Reference_Allele": record.ref,
        "Tumor_Seq_Allele1": record.ref,
        "Tumor_Seq_Allele2": record.alt,
        "Tumor_Sample_Barcode": sample,
        "HGVSc": hgvsc,
        "HGVSp": hgvsp,
        "HGVSp_Short": hgvsp_short,
        "Transcript_ID": t.id if t else "",
        "Exon": t.exons if t else "",
        "Consequence": ",".join(t.consequence) if t else "",
        "IMPACT": t.impact.upper() if t else "",
        "Codons": t.codons if t else "",
        "Amino_Acids": t.amino_acids if t else "",
        "cDNA_position": t.cdna_pos if t else "",
        "CDS_position": t.cds_pos if t else "",
        "Protein_position": t.protein_pos if t else "",
        "dbSNP_RS": record.dbsnp_ids[0] if record.dbsnp_ids else "",
        "dbSNP_Val_Status": "",
        "COSMIC_ID": record.cosmic_ids[0] if record.cosmic_ids else "",
        "ClinVar_ID": clin.id if clin else "",
        "ClinVar_Review_Status": clin.review_status if clin else "",
        "ClinVar_Significance": clin.significance_text if clin else "",
        "ClinVar_Disease": clin.disease if clin else "",
        "PrimateAI_Score": fmt_float(record.evidence.primate_ai, 4),
        "DANN_Score": fmt_float(record.evidence.dann, 4),
        "REVEL_Score": fmt_float(record.evidence.revel, 4),
        "gnomAD_AF": fmt_float(gnomad_exome.get("all"), 6),
        "gnomAD_EAS_AF": fmt_float(gnomad_exome.get("eas"), 6),
        "Depth": "" if record.total_depth is None else str(record.total_depth),
        "VAF": fmt_float(record.variant_frequency, 4),
        "Pathogenicity_Class": verdict.classification.value,
        "Evidence": verdict.reason.value,
    }


# ---------------------------
# Writing
# ---------------------------
def rows_to_frame(rows: List[Dict[str, str]]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=MAF_COLUMNS, dtype=str)


def write_maf(rows: List[Dict[str, str]], output_path: str) -> int:
    out_dir = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(out_dir, exist_ok=True)
    df = rows_to_frame(rows)
    df.to_csv(output_path, sep="\t", index=False, lineterminator="\n")
    logger.debug("Wrote %d MAF records to %s", len(df), output_path)
    return len(df)


def read_maf(path: str) -> pd.DataFrame:
    return pd.read_csv(path, sep="\t", dtype=str, keep_default_na=False)


def merge_maf_files(input_files: Sequence[str], output_path: str) -> int:
    """Concatenate MAF files in the given order; missing files are skipped."""
    frames = []
    n_files = 0
    for path in input_files:
        if not os.path.exists(path):
            logger.warning("MAF file not found, skipping: %s", path)
            continue
        n_files += 1
        df = read_maf(path)
        # header-only chunks contribute nothing
        if not df.empty:
            frames.append(df)
    if frames:
        merged = pd.concat(frames, ignore_index=True)
    else:
        merged = rows_to_frame([])
    merged = merged.reindex(columns=MAF_COLUMNS, fill_value="")
    merged.to_csv(output_path, sep="\t", index=False, lineterminator="\n")
    logger.info("Merged %d MAF files into %s (%d rows)", n_files, output_path, len(merged))
    return len(merged)

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
json2maf - pathogenic variant filtering for Nirvana JSON

This script:
- Reads an annotated Nirvana JSON(.gz) file (PASS positions only)
- Applies the quality gate (depth, VAF, population AF)
- Resolves ClinVar entries and combines PrimateAI-3D / REVEL / DANN scores
- Keeps Pathogenic / Likely pathogenic variants and writes them as MAF
- Reports filtering statistics

Records are split into contiguous chunks, one per worker thread. Each worker
returns its own rows and StatTally; results are merged in chunk order, so the
output is identical for any thread count.

Usage:
    json2maf -i sample.json.gz -o sample.maf
    json2maf -i sample.json.gz -o sample.maf -j 8 --stats stats.txt --keep-temp
"""
from __future__ import annotations
import argparse
import concurrent.futures
import json
import logging
import os
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from tqdm import tqdm

from json2maf_filters import classify
from json2maf_types import (
    DEFAULT_THRESHOLDS,
    ConfigError,
    FilterConfig,
    StatTally,
    VariantRecord,
    Verdict,
)
from maf_writer import merge_maf_files, variant_to_maf, write_maf
from nirvana_reader import NirvanaParseError, read_nirvana

__version__ = "0.5.0"

# ---------------------------
# Logging
# ---------------------------
logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
logger = logging.getLogger("json2maf")


class PartitionMismatchError(RuntimeError):
    """Chunk accounting does not add up; the partitioner is broken."""


# ---------------------------
# Partition / worker / merge
# ---------------------------
def partition(total: int, workers: int) -> List[Tuple[int, int]]:
    """
    Split range(total) into `workers` contiguous [start, end) slices whose
    sizes differ by at most one. Trailing slices are empty when workers > total.
    """
    if workers < 1:
        raise ConfigError(f"Number of workers must be at least 1, got {workers}")
    base, extra = divmod(total, workers)
    bounds = []
    start = 0
    for i in range(workers):
        size = base + (1 if i < extra else 0)
        bounds.append((start, start + size))
        start += size
    return bounds


@dataclass
class ChunkResult:
    index: int
    size: int
    rows: List[Tuple[VariantRecord, Verdict]] = field(default_factory=list)
    tally: StatTally = field(default_factory=StatTally)


def process_chunk(index: int, records: Sequence[VariantRecord], config: FilterConfig) -> ChunkResult:
    """Runs in a worker thread; touches nothing but its own records and tally."""
    result = ChunkResult(index=index, size=len(records))
    for record in records:
        quality, verdict = classify(record, config)
        result.tally.record(quality, verdict)
        if verdict.include:
            result.rows.append((record, verdict))
    return result


def aggregate(results: Sequence[ChunkResult], total: int) -> Tuple[List[Tuple[VariantRecord, Verdict]], StatTally]:
    """Concatenate rows in chunk-index order and sum the tallies."""
    ordered = sorted(results, key=lambda r: r.index)
    if [r.index for r in ordered] != list(range(len(ordered))):
        raise PartitionMismatchError(f"Chunk indices are not contiguous: {[r.index for r in ordered]}")
    seen = sum(r.size for r in ordered)
    if seen != total:
        raise PartitionMismatchError(f"Chunks cover {seen} records, expected {total}")

    rows: List[Tuple[VariantRecord, Verdict]] = []
    tally = StatTally()
    for r in ordered:
        errors = r.tally.conservation_errors(r.size)
        if errors:
            raise PartitionMismatchError(f"Chunk {r.index}: {'; '.join(errors)}")
        rows.extend(r.rows)
        tally.merge(r.tally)
    return rows, tally


def run_parallel(records: Sequence[VariantRecord], config: FilterConfig, threads: int,
                 show_progress: bool = False) -> Tuple[List[Tuple[VariantRecord, Verdict]], StatTally, List[ChunkResult]]:
    bounds = partition(len(records), threads)
    logger.info("Filtering %d variants in %d chunks (threads=%d)", len(records), len(bounds), threads)
    results: List[Optional[ChunkResult]] = [None] * len(bounds)
    with concurrent.futures.ThreadPoolExecutor(max_workers=threads) as executor, \
            tqdm(total=len(records), unit="variant", desc="Filtering", disable=not show_progress) as pbar:
        futures = {
            executor.submit(process_chunk, i, records[start:end], config): i
            for i, (start, end) in enumerate(bounds)
        }
        for future in concurrent.futures.as_completed(futures):
            res = future.result()
            results[res.index] = res
            pbar.update(res.size)
            logger.debug("Chunk %d done: %d records, %d kept", res.index, res.size, len(res.rows))
    rows, tally = aggregate([r for r in results if r is not None], len(records))
    return rows, tally, results


# ---------------------------
# Statistics
# ---------------------------
def format_report(tally: StatTally, total: int, threads: int, elapsed: float) -> str:
    bar = "=" * 60
    return "\n".join([
        bar,
        "Filtering Statistics Report",
        bar,
        "",
        f"Number of threads:      {threads}",
        f"Elapsed time:           {elapsed:.2f} s",
        f"Total variants:         {total}",
        "",
        "Quality filtering:",
        f"  - Passed quality:             {tally.quality_passed}",
        f"  - Insufficient depth:         {tally.depth_failed}",
        f"  - VAF too low:                {tally.vaf_failed}",
        f"  - Population freq too high:   {tally.population_failed}",
        "",
        "Pathogenicity assessment:",
        f"  - ClinVar Pathogenic:         {tally.clinvar_pathogenic}",
        f"  - ClinVar Likely pathogenic:  {tally.clinvar_likely_pathogenic}",
        f"  - Predictive scores support:  {tally.predictive_supported}",
        f"    * PrimateAI-3D solo support: {tally.predictive_primate_only}",
        f"    * 2+ scores support:         {tally.predictive_dual}",
        "",
        "Final results:",
        f"  - Included variants:  {tally.included}",
        f"  - Excluded variants:  {tally.excluded}",
        "",
        bar,
        "",
    ])


# ---------------------------
# Pipeline
# ---------------------------
@dataclass
class RunSummary:
    total: int
    tally: StatTally
    threads: int
    elapsed: float
    output: str
    chunk_files: List[str] = field(default_factory=list)


def chunk_dir_for(output_path: str) -> str:
    return output_path + ".chunks"


def run_pipeline(input_path: str, output_path: str, config: FilterConfig, threads: int,
                 keep_temp: bool = False, show_progress: bool = False) -> RunSummary:
    config.validate()
    if threads < 1:
        raise ConfigError(f"threads must be at least 1, got {threads}")
    t0 = time.time()

    header, records = read_nirvana(input_path, config)
    sample = header.samples[0] if header.samples else ""

    rows, tally, results = run_parallel(records, config, threads, show_progress=show_progress)

    chunk_files: List[str] = []
    if keep_temp:
        tmp_dir = chunk_dir_for(output_path)
        os.makedirs(tmp_dir, exist_ok=True)
        for res in results:
            path = os.path.join(tmp_dir, f"chunk_{res.index:04d}.maf")
            write_maf([variant_to_maf(rec, v, sample) for rec, v in res.rows], path)
            chunk_files.append(path)
        merge_maf_files(chunk_files, output_path)
        logger.info("Kept %d intermediate chunk files in %s", len(chunk_files), tmp_dir)
    else:
        write_maf([variant_to_maf(rec, v, sample) for rec, v in rows], output_path)

    elapsed = time.time() - t0
    logger.info("Filtered %d / %d variants -> %s (%.2fs)", tally.included, len(records), output_path, elapsed)
    return RunSummary(total=len(records), tally=tally, threads=threads, elapsed=elapsed,
                      output=output_path, chunk_files=chunk_files)


# ---------------------------
# Configuration / CLI
# ---------------------------
def load_config(config_json: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> FilterConfig:
    values: Dict[str, Any] = dict(DEFAULT_THRESHOLDS)
    if config_json:
        try:
            with open(config_json) as fh:
                loaded = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config JSON {config_json}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config JSON {config_json} must contain an object")
        values.update(loaded)
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value
    config = FilterConfig.from_dict(values)
    config.validate()
    return config


def build_parser():
    p = argparse.ArgumentParser(prog="json2maf", description="Pathogenic variant filtering tool for Nirvana JSON")
    p.add_argument("-i", "--input", required=True, help="Input Nirvana JSON(.gz) file")
    p.add_argument("-o", "--output", required=True, help="Output MAF file")
    p.add_argument("--min-depth", type=int, help="Minimum sequencing depth (default 30)")
    p.add_argument("--min-vaf", type=float, help="Minimum variant allele frequency (default 0.03)")
    p.add_argument("--max-eas-af", type=float, help="Maximum population allele frequency (default 0.01)")
    p.add_argument("--population", help="Population key checked against --max-eas-af (default eas)")
    p.add_argument("--min-revel", type=float, help="REVEL score threshold (default 0.75)")
    p.add_argument("--min-primate-ai", type=float, help="PrimateAI-3D score threshold (default 0.8)")
    p.add_argument("--min-dann", type=float, help="DANN score threshold (default 0.96)")
    p.add_argument("--config-json", help="JSON file overriding default thresholds and lookup tables")
    p.add_argument("--keep-temp", action="store_true", help="Keep per-chunk MAF files next to the output")
    p.add_argument("--stats", help="Write statistics report to this path")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    p.add_argument("-q", "--quiet", action="store_true", help="Quiet mode (no progress display)")
    p.add_argument("-j", "--threads", type=int, default=None, help="Number of threads (default: CPU cores)")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.WARNING)

    threads = args.threads if args.threads is not None else (os.cpu_count() or 1)

    try:
        config = load_config(args.config_json, {
            "min_total_depth": args.min_depth,
            "min_variant_frequency": args.min_vaf,
            "max_population_af": args.max_eas_af,
            "population": args.population,
            "min_revel_score": args.min_revel,
            "min_primate_ai_score": args.min_primate_ai,
            "min_dann_score": args.min_dann,
        })
        if not os.path.exists(args.input):
            raise ConfigError(f"Input file does not exist: {args.input}")
        if args.verbose:
            logger.debug("Configuration: %s", config)
        summary = run_pipeline(args.input, args.output, config, threads,
                               keep_temp=args.keep_temp, show_progress=not args.quiet)

        if args.verbose or args.stats:
            report = format_report(summary.tally, summary.total, summary.threads, summary.elapsed)
            print(report)
            if args.stats:
                with open(args.stats, "w") as fh:
                    fh.write(report)
                logger.info("Statistics report written to: %s", args.stats)
    except (ConfigError, NirvanaParseError, PartitionMismatchError, OSError) as e:
        logger.error("%s", e)
        return 1

    if not args.quiet:
        print(f"\nProcessing complete! ({summary.tally.included} variants written, {summary.threads} threads)")
    return 0


if __name__ == "__main__":
    sys.exit(main())

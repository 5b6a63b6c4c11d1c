"""
virodiv Command-Line Interface

Entry point for the ``virodiv`` command. Each sub-command reads a sequence
file, runs one analysis and writes a CSV/FASTA file or logs the result.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from virodiv import __version__
from virodiv.config import get_config
from virodiv.diversity import nucleotide_pi, pairwise_distance_histogram, shannon_entropy
from virodiv.errors import VirodivError
from virodiv.fasta import read_aa_fasta, read_sequences, write_fasta
from virodiv.hypermut import detect_hypermutation
from virodiv.locator import sequence_locator
from virodiv.logging import setup_logging
from virodiv.models import SequenceType
from virodiv.poisson import poisson_minority_cutoff
from virodiv.dedup import collapse
from virodiv.report import entropy_table, write_hypermutation_report, write_locator_report, write_table


def _locate(args, logger) -> int:
    collection = read_sequences(args.input)
    rows = sequence_locator(collection, args.reference, reference_dir=args.reference_dir)
    output = args.output or Path(f"{collection.title}_locator.csv")
    write_locator_report(rows, output)
    logger.info(f"Locator report written to {output}")
    return 0


def _hypermut(args, logger) -> int:
    collection = read_sequences(args.input)
    result = detect_hypermutation(collection, p_cutoff=args.p_value, fold_cutoff=args.fold_cutoff)
    output = args.output or Path(f"{collection.title}_hypermut.csv")
    write_hypermutation_report(result.records, output)
    if args.filtered:
        write_fasta(result.filtered, args.filtered)
        logger.info(f"Sequences without hypermutation written to {args.filtered}")
    for record in result.hypermutated_records:
        logger.info(
            f"  {record.identifier}: a={record.a} b={record.b} c={record.c} d={record.d} "
            f"rr={record.rate_ratio:.2f} p={record.p_value:.3g}"
        )
    logger.info(f"Hypermutation report written to {output}")
    return 0


def _diversity(args, logger) -> int:
    if args.amino_acid:
        collection = read_aa_fasta(args.input)
        entropy = shannon_entropy(collection, SequenceType.AMINO_ACID)
    else:
        collection = read_sequences(args.input)
        entropy = shannon_entropy(collection)
        logger.info(f"Nucleotide diversity (pi): {nucleotide_pi(collection)}")
        histogram = pairwise_distance_histogram(collection)
        logger.info("Pairwise differences (distance: pairs)")
        for distance, pairs in histogram.items():
            logger.info(f"  {distance}: {pairs}")

    if args.output:
        write_table(entropy_table(entropy), args.output)
        logger.info(f"Entropy table written to {args.output}")
    return 0


def _cutoff(args, logger) -> int:
    collection = read_sequences(args.input)
    cutoff = poisson_minority_cutoff(collection, args.error_rate, args.fold_cutoff)
    logger.info(f"Poisson minority cutoff for '{collection.title}': {cutoff}")
    print(cutoff)
    return 0


def _collapse(args, logger) -> int:
    collection = read_sequences(args.input)
    collapsed = collapse(collection, args.cutoff)
    output = args.output or Path(f"{collection.title}_collapsed.fasta")
    write_fasta(collapsed, output)
    logger.info(f"{collapsed.size} collapsed sequences written to {output}")
    return 0


def _config(args, logger) -> int:
    config = get_config()
    config.print_status()
    is_valid, errors = config.validate(require_muscle=args.require_muscle)
    if errors:
        logger.error("Configuration Errors:")
        for error in errors:
            logger.error(f"  ✗ {error}")
        return 1
    logger.info("✓ Configuration is valid")
    return 0


def build_parser() -> argparse.ArgumentParser:
    config = get_config()
    parser = argparse.ArgumentParser(
        prog="virodiv",
        description="Diversity, hypermutation and reference location for viral sequences",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug output")
    parser.add_argument("--log-file", type=Path, help="Also write log messages to this file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("locate", help="Locate sequences on a reference genome")
    p.add_argument("input", type=Path)
    p.add_argument("-r", "--reference", default="HXB2", help="HXB2 (default), NL43 or MAC239")
    p.add_argument("--reference-dir", type=Path, help="Directory of reference FASTA files")
    p.add_argument("-o", "--output", type=Path, help="Output CSV")
    p.set_defaults(func=_locate)

    p = subparsers.add_parser("hypermut", help="Detect APOBEC3G/F hypermutation in an alignment")
    p.add_argument("input", type=Path)
    p.add_argument("-p", "--p-value", type=float, default=0.05)
    p.add_argument("--fold-cutoff", type=float, default=config.fold_cutoff)
    p.add_argument("-o", "--output", type=Path, help="Output CSV")
    p.add_argument("--filtered", type=Path, help="Write non-hypermutated sequences to this FASTA")
    p.set_defaults(func=_hypermut)

    p = subparsers.add_parser("diversity", help="Entropy, pi and pairwise distances of an alignment")
    p.add_argument("input", type=Path)
    p.add_argument("--amino-acid", action="store_true", help="Input is an amino-acid alignment")
    p.add_argument("-o", "--output", type=Path, help="Output entropy CSV")
    p.set_defaults(func=_diversity)

    p = subparsers.add_parser("cutoff", help="Poisson minority-variant cutoff of an alignment")
    p.add_argument("input", type=Path)
    p.add_argument("-e", "--error-rate", type=float, default=config.error_rate)
    p.add_argument("--fold-cutoff", type=float, default=config.fold_cutoff)
    p.set_defaults(func=_cutoff)

    p = subparsers.add_parser("collapse", help="Collapse near-identical sequences")
    p.add_argument("input", type=Path)
    p.add_argument("-c", "--cutoff", type=int, default=1)
    p.add_argument("-o", "--output", type=Path, help="Output FASTA")
    p.set_defaults(func=_collapse)

    p = subparsers.add_parser("config", help="Show and validate configuration")
    p.add_argument("--require-muscle", action="store_true")
    p.set_defaults(func=_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the virodiv command."""
    args = build_parser().parse_args(argv)
    logger = setup_logging(log_file=args.log_file, verbose=args.verbose)

    try:
        return args.func(args, logger)
    except VirodivError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())

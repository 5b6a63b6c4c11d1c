"""
APOBEC3G/F hypermutation detection.

APOBEC3G/F edits G to A preferentially in a GRD context (G followed by A/G,
then A/G/T). Each sequence is compared against the sample consensus:

1. Fisher's exact test on G->A frequencies at GRD positions against the other
   G positions (control). p < 0.05 flags the sequence.
2. When more than 20 sequences are available, the per-sequence count of GRD
   G->A mutations is compared with a Poisson model; sequences above the first
   count observed 20x more often than expected are flagged as outliers. The
   Poisson model is unreliable on fewer sequences.

See https://www.hiv.lanl.gov/content/sequence/HYPERMUT/hypermut.html
"""

import logging
import math
import re
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

from .consensus import consensus
from .errors import EmptyInputError
from .models import HypermutationRecord, HypermutationResult, SequenceCollection
from .poisson import first_exceeding_count
from .stats import PoissonModel, fisher_exact_test
from .translation import GAP
from .validation import require_alignment

logger = logging.getLogger(__name__)

APOBEC_MOTIF = re.compile(r"(?=G[AG][AGT])")
MUTANT_BASE = "A"


def apobec3gf_positions(reference: str) -> Tuple[List[int], List[int]]:
    """Find APOBEC3G/F motif and control positions in a consensus.

    Gaps are removed before scanning windows of three bases at offsets
    0..len-3; offsets are reported as columns of the original (gapped)
    string.

    Returns:
        Tuple of (motif_columns, control_columns)
    """
    columns = [i for i, base in enumerate(reference) if base != GAP]
    ungapped = "".join(reference[i] for i in columns)

    motif = {m.start() for m in APOBEC_MOTIF.finditer(ungapped)}
    motif_columns = []
    control_columns = []
    for offset in range(len(ungapped) - 2):
        if offset in motif:
            motif_columns.append(columns[offset])
        elif ungapped[offset] == "G":
            control_columns.append(columns[offset])
    return motif_columns, control_columns


def count_mutations(sequence: str, positions: Sequence[int]) -> Tuple[int, int]:
    """Count A's and usable (non-gap) sites of a sequence at the given columns."""
    mutated = usable = 0
    for p in positions:
        base = sequence[p]
        if base == GAP:
            continue
        usable += 1
        if base == MUTANT_BASE:
            mutated += 1
    return mutated, usable


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def rate_ratio(a: int, b: int, c: int, d: int) -> float:
    """(a/b)/(c/d), nan or inf when a denominator is zero."""
    return _ratio(_ratio(a, b), _ratio(c, d))


def poisson_outlier_cutoff(counts: Sequence[int], fold_cutoff: float = 20) -> int:
    """Mutation count above which a sequence is a Poisson outlier.

    lambda is the mean count. The first k in 1..max(counts) whose observed
    number of sequences reaches fold_cutoff times the Poisson expectation is
    the cutoff; if none does, max(counts) is used.
    """
    if not counts:
        raise EmptyInputError("No mutation counts to model")

    total = len(counts)
    model = PoissonModel(sum(counts) / total)
    observed = Counter(counts)
    max_count = max(counts)

    cutoff = first_exceeding_count(
        observed,
        lambda k: total * model.pmf(k),
        max_count,
        fold_cutoff,
    )
    return max_count if cutoff is None else cutoff


def detect_hypermutation(
    collection: SequenceCollection,
    p_cutoff: float = 0.05,
    fold_cutoff: float = 20,
    min_sequences: int = 20,
) -> HypermutationResult:
    """Screen an alignment for APOBEC3G/F hypermutated sequences.

    Args:
        collection: Aligned nucleotide collection
        p_cutoff: Fisher's exact test significance level
        fold_cutoff: Fold multiplier for the Poisson outlier criterion
        min_sequences: The Poisson criterion runs only above this many sequences

    Returns:
        HypermutationResult with hypermutated/filtered collections and a
        record for every sequence

    Raises:
        EmptyInputError: If the collection has no sequences
        AlignmentLengthError: If the sequences are not aligned
    """
    require_alignment(collection)

    reference = consensus(collection)
    motif, control = apobec3gf_positions(reference)
    logger.debug(f"{len(motif)} APOBEC3G/F motif positions, {len(control)} control positions")

    stats: Dict[str, Tuple[int, int, int, int, float, float]] = {}
    for name, seq in collection.dna.items():
        a, b = count_mutations(seq, motif)
        c, d = count_mutations(seq, control)
        p_value = fisher_exact_test([[b - a, a], [d - c, c]])
        stats[name] = (a, b, c, d, rate_ratio(a, b, c, d), p_value)

    outlier_cutoff: Optional[int] = None
    if collection.size > min_sequences:
        outlier_cutoff = poisson_outlier_cutoff([s[0] for s in stats.values()], fold_cutoff)
        logger.debug(f"Poisson outlier cutoff: {outlier_cutoff}")

    records = []
    for name, (a, b, c, d, rr, p_value) in stats.items():
        outlier = outlier_cutoff is not None and a > outlier_cutoff
        records.append(HypermutationRecord(
            identifier=name,
            a=a, b=b, c=c, d=d,
            rate_ratio=rr,
            p_value=p_value,
            hypermutated=p_value < p_cutoff or outlier,
            poisson_outlier=outlier,
        ))

    flagged = [r.identifier for r in records if r.hypermutated]
    flagged_set = set(flagged)

    hypermutated = collection.sub(flagged)
    hypermutated.title = f"{collection.title}_hypermut"
    filtered = collection.sub(name for name in collection.dna if name not in flagged_set)

    logger.info(
        f"{len(flagged)} of {collection.size} sequences in '{collection.title}' "
        f"show APOBEC3G/F hypermutation"
    )
    return HypermutationResult(
        hypermutated=hypermutated,
        filtered=filtered,
        records=records,
        outlier_cutoff=outlier_cutoff,
    )

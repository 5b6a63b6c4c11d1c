"""
Reference coordinate locator.

Maps a query sequence onto a reference genome's coordinates, in the manner of
the LANL HIV Sequence Locator: the query and its reverse complement are both
aligned to the reference and the better orientation is kept.

See https://www.hiv.lanl.gov/content/sequence/LOCATE/locate.html
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .aligners import PairwiseReferenceAligner
from .errors import DegenerateInputError
from .models import (
    AlignmentResult,
    Direction,
    LocatorResult,
    LocatorRow,
    ReferenceGenome,
    SequenceCollection,
)
from .references import DEFAULT_REFERENCE, load_reference
from .translation import GAP, reverse_complement

logger = logging.getLogger(__name__)

ReferenceOption = Union[str, ReferenceGenome, None]
PositionSpec = Union[int, range, Iterable[int]]


def locate_alignment(
    alignment: AlignmentResult,
    direction: Direction = Direction.FORWARD,
    reference: str = "",
) -> LocatorResult:
    """Derive reference coordinates and similarity from one alignment.

    The span excludes the flanking gaps of both rows: it runs from the later
    of the two first bases to the earlier of the two last bases, so a query
    overhanging either end of the reference is clipped to the reference.
    Start is the first reference base in the span, end the last. Similarity
    counts identical columns over the span length; only gaps inside the span
    are indels.

    Raises:
        DegenerateInputError: If either row holds no bases or the rows do
            not overlap
    """
    query = alignment.aligned_query
    ref = alignment.aligned_reference
    gap = alignment.gap

    query_cols = [i for i, base in enumerate(query) if base != gap]
    ref_cols = [i for i, base in enumerate(ref) if base != gap]
    if not query_cols:
        raise DegenerateInputError("Aligned query contains no bases")
    if not ref_cols:
        raise DegenerateInputError("Aligned reference contains no bases")

    first = max(query_cols[0], ref_cols[0])
    last = min(query_cols[-1], ref_cols[-1])
    if first > last:
        raise DegenerateInputError("Query and reference do not overlap in the alignment")

    ref_before = sum(1 for base in ref[:first] if base != gap)
    start = ref_before + 1
    end = ref_before + sum(1 for base in ref[first:last + 1] if base != gap)

    span_query = query[first:last + 1]
    span_ref = ref[first:last + 1]
    matches = sum(
        1 for q, r in zip(span_query, span_ref) if q == r and q != gap
    )
    similarity = matches / len(span_query) * 100
    indel = gap in span_query or gap in span_ref

    return LocatorResult(
        start=start,
        end=end,
        similarity=similarity,
        indel=indel,
        direction=direction,
        aligned_query=query,
        aligned_reference=ref,
        reference=reference,
    )


def locate(
    sequence: str,
    reference: ReferenceOption = DEFAULT_REFERENCE,
    aligner=None,
    reference_dir: Optional[Union[str, Path]] = None,
) -> LocatorResult:
    """Locate a nucleotide sequence on a reference genome.

    Args:
        sequence: Query nucleotide sequence (gaps are removed)
        reference: HXB2 (default), NL43, MAC239, or a loaded ReferenceGenome;
            unrecognized names fall back to HXB2 with a warning
        aligner: Object with ``align(query, reference) -> AlignmentResult``;
            defaults to PairwiseReferenceAligner
        reference_dir: Directory of cached reference FASTA files

    Returns:
        LocatorResult for the orientation with the higher similarity
        (forward on ties)

    Raises:
        AlignmentUnavailableError: If the reference or aligner is unavailable
    """
    genome = load_reference(reference, reference_dir=reference_dir)
    aligner = aligner or PairwiseReferenceAligner()

    query = sequence.replace(GAP, "").upper()
    forward = locate_alignment(
        aligner.align(query, genome.sequence), Direction.FORWARD, genome.name
    )
    reverse = locate_alignment(
        aligner.align(reverse_complement(query), genome.sequence), Direction.REVERSE, genome.name
    )

    best = forward if forward.similarity >= reverse.similarity else reverse
    logger.debug(
        f"Located {len(query)} nt on {genome.name} {best.start}-{best.end} "
        f"({best.direction.value}, {best.similarity:.2f}%)"
    )
    return best


def sequence_locator(
    collection: SequenceCollection,
    reference: ReferenceOption = DEFAULT_REFERENCE,
    aligner=None,
    reference_dir: Optional[Union[str, Path]] = None,
) -> List[LocatorRow]:
    """Locate every sequence of a collection; identical sequences are aligned once.

    Returns:
        One LocatorRow per identifier, in collection order
    """
    genome = load_reference(reference, reference_dir=reference_dir)
    aligner = aligner or PairwiseReferenceAligner()

    located: Dict[str, LocatorResult] = {}
    rows = []
    for name, seq in collection.dna.items():
        if seq not in located:
            located[seq] = locate(seq, genome, aligner=aligner)
        rows.append(LocatorRow(title=collection.title, identifier=name, result=located[seq]))

    logger.info(
        f"Located {len(located)} unique sequences from '{collection.title}' on {genome.name}"
    )
    return rows


def _as_positions(spec: PositionSpec) -> set:
    if isinstance(spec, int):
        return {spec}
    return set(spec)


def filter_by_location(
    collection: SequenceCollection,
    start_nt: PositionSpec,
    end_nt: PositionSpec,
    allow_indel: bool = True,
    reference: ReferenceOption = DEFAULT_REFERENCE,
    aligner=None,
    reference_dir: Optional[Union[str, Path]] = None,
) -> SequenceCollection:
    """Keep sequences whose reference start and end fall in the given positions.

    Args:
        collection: Nucleotide collection (need not be aligned)
        start_nt: Accepted start position(s): an int, a range or an iterable
        end_nt: Accepted end position(s)
        allow_indel: If False, sequences with an indel are dropped too
        reference: Reference genome option, as for ``locate``

    Returns:
        Subset of the collection that passes
    """
    starts = _as_positions(start_nt)
    ends = _as_positions(end_nt)

    passed = []
    for row in sequence_locator(collection, reference, aligner=aligner, reference_dir=reference_dir):
        loc = row.result
        if loc.start in starts and loc.end in ends and (allow_indel or not loc.indel):
            passed.append(row.identifier)

    logger.info(f"{len(passed)} of {collection.size} sequences pass the location check")
    return collection.sub(passed)

"""
Deduplication and collapsing of sequence collections.

- unique_sequences: one record per distinct sequence
- filter_similar_pid: drop reads whose Primer ID looks like a sequencing
  offspring of a far more abundant Primer ID on the same sequence
- collapse: merge sequences within a few differences of a more frequent one
"""

import itertools
import logging
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Set, Tuple

import edlib

from .models import SequenceCollection

logger = logging.getLogger(__name__)


def edit_distance(seq1: str, seq2: str) -> int:
    """Hamming distance for equal-length strings, Levenshtein distance otherwise."""
    if len(seq1) == len(seq2):
        return sum(1 for x, y in zip(seq1, seq2) if x != y)
    if not seq1 or not seq2:
        return max(len(seq1), len(seq2))
    return edlib.align(seq1, seq2, mode="NW", task="distance")["editDistance"]


def unique_sequences(collection: SequenceCollection, tag: str = "sequence") -> SequenceCollection:
    """Collapse identical sequences.

    Distinct sequences are named ``<tag>_<order>_<count>`` in order of first
    appearance.

    Example:
        {AAAA x3, CCCC x2, TTTT x1} -> sequence_1_3, sequence_2_2, sequence_3_1
    """
    counts = Counter(collection.dna.values())
    dna = {
        f"{tag}_{n}_{count}": seq
        for n, (seq, count) in enumerate(counts.items(), start=1)
    }
    return SequenceCollection(dna=dna, title=f"{collection.title}_uniq", file=collection.file)


def parse_pid_tag(identifier: str) -> Optional[Tuple[str, int]]:
    """Split ``PID_count[_...]`` into (PID, count); None if no count is present."""
    fields = identifier.lstrip(">").split("_")
    if len(fields) < 2:
        return None
    try:
        return fields[0], int(fields[1])
    except ValueError:
        return None


def filter_similar_pid(collection: SequenceCollection, cutoff: float = 10) -> SequenceCollection:
    """Remove reads carrying residual offspring Primer IDs.

    Identifiers look like ``AGGCGTAGA_32_sample1_RT``: Primer ID, then the
    number of raw reads with that Primer ID. Among reads with identical
    sequences, two Primer IDs at most one base apart are compared; if one
    count is at least ``cutoff`` times the other, every read carrying the
    smaller Primer ID is removed.

    Returns:
        New collection without the offspring Primer ID reads
    """
    groups: Dict[str, Dict[str, int]] = defaultdict(dict)
    for name, seq in collection.dna.items():
        tag = parse_pid_tag(name)
        if tag is None:
            logger.warning(f"No Primer ID count in identifier '{name}'; keeping it unfiltered")
            continue
        pid, count = tag
        groups[seq][pid] = count

    offspring: Set[str] = set()
    for pid_counts in groups.values():
        for pid1, pid2 in itertools.combinations(pid_counts, 2):
            if edit_distance(pid1, pid2) > 1:
                continue
            n1, n2 = pid_counts[pid1], pid_counts[pid2]
            if n1 >= cutoff * n2:
                offspring.add(pid2)
            elif n2 >= cutoff * n1:
                offspring.add(pid1)

    kept = []
    for name in collection.dna:
        tag = parse_pid_tag(name)
        if tag is None or tag[0] not in offspring:
            kept.append(name)

    logger.info(
        f"Removed {collection.size - len(kept)} reads with {len(offspring)} offspring Primer IDs"
    )
    return collection.sub(kept)


def collapse(collection: SequenceCollection, cutoff: int = 1) -> SequenceCollection:
    """Collapse sequences within ``cutoff`` differences of each other.

    For every pair of distinct sequences within the cutoff, the less frequent
    one is discarded (on equal counts, the one seen later). Counts of
    discarded sequences are added to the nearest kept sequence (fewest
    differences, then higher count, then first seen). Aligning first is
    recommended.

    Returns:
        New collection named ``seq_<rank>_<count>``, ranked by aggregated count
    """
    counts = Counter(collection.dna.values())
    distinct: List[str] = list(counts)

    distances: Dict[Tuple[int, int], int] = {}
    discarded: Set[int] = set()
    for i, j in itertools.combinations(range(len(distinct)), 2):
        diff = edit_distance(distinct[i], distinct[j])
        distances[(i, j)] = diff
        if diff <= cutoff:
            discarded.add(j if counts[distinct[i]] >= counts[distinct[j]] else i)

    kept = [i for i in range(len(distinct)) if i not in discarded]
    totals = {i: counts[distinct[i]] for i in kept}

    for d in sorted(discarded):
        nearest = min(
            kept,
            key=lambda k: (distances[(min(k, d), max(k, d))], -counts[distinct[k]], k),
        )
        totals[nearest] += counts[distinct[d]]

    ranked = sorted(kept, key=lambda k: (-totals[k], k))
    dna = {
        f"seq_{rank}_{totals[k]}": distinct[k]
        for rank, k in enumerate(ranked, start=1)
    }
    logger.info(f"Collapsed {len(distinct)} distinct sequences into {len(dna)}")
    return SequenceCollection(dna=dna, title=f"{collection.title}_collapsed", file=collection.file)

"""
Codon translation and strand helpers for nucleotide strings.
"""

from typing import Dict

from Bio.Data import CodonTable
from Bio.Seq import reverse_complement as _bio_reverse_complement

GAP = "-"
STOP = "*"
UNKNOWN_AA = "X"

_STANDARD_TABLE = CodonTable.unambiguous_dna_by_id[1]

CODON_TABLE: Dict[str, str] = dict(_STANDARD_TABLE.forward_table)
for _stop in _STANDARD_TABLE.stop_codons:
    CODON_TABLE[_stop] = STOP


def translate_codon(codon: str) -> str:
    """Translate one codon; all-gap codons stay gaps, anything unreadable is X."""
    codon = codon.upper().replace("U", "T")
    if codon == GAP * 3:
        return GAP
    return CODON_TABLE.get(codon, UNKNOWN_AA)


def translate(sequence: str, codon_position: int = 0) -> str:
    """Translate a nucleotide string in the given reading frame.

    Args:
        sequence: Nucleotide string, may contain gaps
        codon_position: Reading frame offset, 0, 1 or 2

    Returns:
        Amino-acid string; a trailing partial codon is dropped
    """
    if codon_position not in (0, 1, 2):
        raise ValueError(f"codon_position must be 0, 1 or 2, got {codon_position}")

    frame = sequence[codon_position:]
    usable = len(frame) - len(frame) % 3
    return "".join(translate_codon(frame[i:i + 3]) for i in range(0, usable, 3))


def reverse_complement(sequence: str) -> str:
    """Reverse complement a nucleotide string, IUPAC codes included."""
    return _bio_reverse_complement(sequence.upper())

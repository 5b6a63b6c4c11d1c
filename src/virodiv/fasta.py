"""
Sequence file reading and writing.

FASTA records are ``>identifier`` headers followed by one or more sequence
lines, which are concatenated and upper-cased. Blank lines and lines starting
with ``=`` are ignored. Identifiers keep the whole header line without the
leading ``>``. FASTQ files fill both the nucleotide and quality mappings.
"""

from enum import Enum
from pathlib import Path
from typing import Dict, Union

from Bio.SeqIO.QualityIO import FastqGeneralIterator

from .errors import InputError
from .models import SequenceCollection, SequenceType


class SequenceFormat(Enum):
    """Supported sequence file formats."""
    FASTA = "fasta"
    FASTQ = "fastq"


def detect_format(filepath: Union[str, Path]) -> SequenceFormat:
    """Detect sequence file format from the file extension.

    Raises:
        InputError: If format cannot be determined
    """
    name_lower = Path(filepath).name.lower()
    if name_lower.endswith((".fq", ".fastq")):
        return SequenceFormat.FASTQ
    if name_lower.endswith((".fa", ".fasta", ".fas", ".fna", ".faa", ".aln")):
        return SequenceFormat.FASTA

    raise InputError(f"Cannot determine sequence format from file: {filepath}")


def _check_readable(path: Path) -> None:
    if not path.exists():
        raise InputError(f"Sequence file not found: {path}")
    if not path.is_file():
        raise InputError(f"Not a regular file: {path}")


def parse_fasta_records(filepath: Union[str, Path]) -> Dict[str, str]:
    """Parse a FASTA file into an identifier -> sequence mapping.

    Raises:
        InputError: If the file is missing or unreadable
    """
    path = Path(filepath)
    _check_readable(path)

    records: Dict[str, str] = {}
    parts: Dict[str, list] = {}
    name = None

    try:
        with open(path, "r") as f:
            for line in f:
                line = line.replace("\x00", "").rstrip("\n\r")
                if not line or line.startswith("="):
                    continue
                if line.startswith(">"):
                    name = line[1:]
                    parts[name] = []
                elif name is not None:
                    parts[name].append(line.strip().upper())
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Cannot read sequence file {path}: {e}") from e

    for name, chunks in parts.items():
        records[name] = "".join(chunks)
    return records


def read_fasta(filepath: Union[str, Path]) -> SequenceCollection:
    """Read a nucleotide FASTA file. Title is the file name without extension."""
    path = Path(filepath)
    return SequenceCollection(
        dna=parse_fasta_records(path),
        title=path.stem,
        file=str(path),
    )


def read_aa_fasta(filepath: Union[str, Path]) -> SequenceCollection:
    """Read an amino-acid FASTA file into the ``aa`` mapping."""
    path = Path(filepath)
    return SequenceCollection(
        aa=parse_fasta_records(path),
        title=path.stem,
        file=str(path),
    )


def read_fastq(filepath: Union[str, Path]) -> SequenceCollection:
    """Read a FASTQ file into the ``dna`` and ``qc`` mappings."""
    path = Path(filepath)
    _check_readable(path)

    dna: Dict[str, str] = {}
    qc: Dict[str, str] = {}
    try:
        with open(path, "r") as handle:
            for title, seq, qual in FastqGeneralIterator(handle):
                dna[title] = seq.upper()
                qc[title] = qual
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Cannot read sequence file {path}: {e}") from e
    except ValueError as e:
        raise InputError(f"Malformed FASTQ file {path}: {e}") from e

    return SequenceCollection(dna=dna, qc=qc, title=path.stem, file=str(path))


def read_sequences(filepath: Union[str, Path]) -> SequenceCollection:
    """Read a FASTA or FASTQ file, choosing the parser by extension."""
    if detect_format(filepath) == SequenceFormat.FASTQ:
        return read_fastq(filepath)
    return read_fasta(filepath)


def write_fasta(
    collection: SequenceCollection,
    filepath: Union[str, Path],
    sequence_type: SequenceType = SequenceType.NUCLEOTIDE,
) -> None:
    """Write one role of a collection as FASTA (one sequence line per record)."""
    with open(filepath, "w") as f:
        for name, seq in collection.mapping(sequence_type).items():
            f.write(f">{name}\n{seq}\n")


def to_relaxed_phylip(collection: SequenceCollection) -> str:
    """Format the nucleotide alignment as relaxed sequential PHYLIP.

    Names are padded to at least 10 characters plus two spaces; sequences are
    split into blocks of 10.
    """
    sequences = collection.dna
    length = collection.alignment_length()
    lines = [f" {len(sequences)} {length}"]

    name_width = max([10] + [len(name) for name in sequences])
    for name, seq in sequences.items():
        blocks = " ".join(seq[i:i + 10] for i in range(0, len(seq), 10))
        lines.append(f"{name.ljust(name_width + 2)}{blocks}")
    return "\n".join(lines) + "\n"

"""
Alignment collaborators.

PairwiseReferenceAligner aligns one query to a reference genome with
Biopython's PairwiseAligner. MuscleAligner runs the MUSCLE executable on a
whole collection. Both raise AlignmentUnavailableError on failure; neither
retries.
"""

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Optional, Union

from Bio.Align import PairwiseAligner

from .config import get_config
from .errors import AlignmentUnavailableError
from .fasta import read_fasta, write_fasta
from .models import AlignmentResult, SequenceCollection

logger = logging.getLogger(__name__)


def default_pairwise_aligner() -> PairwiseAligner:
    """Global aligner with free end gaps, so a short query can sit anywhere
    along a full genome."""
    aligner = PairwiseAligner()
    aligner.mode = "global"
    aligner.match_score = 2
    aligner.mismatch_score = -1
    aligner.open_gap_score = -5
    aligner.extend_gap_score = -2
    aligner.end_insertion_score = 0
    aligner.end_deletion_score = 0
    return aligner


class PairwiseReferenceAligner:
    """Align a query against a reference sequence.

    ``align(query, reference)`` returns an AlignmentResult holding the
    gapped query and reference rows of the top-scoring alignment.
    """

    def __init__(self, aligner: Optional[PairwiseAligner] = None):
        self._aligner = aligner or default_pairwise_aligner()

    def align(self, query: str, reference: str) -> AlignmentResult:
        if not query or not reference:
            raise AlignmentUnavailableError("Cannot align an empty sequence")
        try:
            alignments = self._aligner.align(reference, query)
            top_alignment = alignments[0]
            aligned_reference = str(top_alignment[0])
            aligned_query = str(top_alignment[1])
        except (ValueError, IndexError, OverflowError, MemoryError) as e:
            raise AlignmentUnavailableError(f"Pairwise alignment failed: {e}") from e

        return AlignmentResult(aligned_query=aligned_query, aligned_reference=aligned_reference)


class MuscleAligner:
    """Multiple sequence alignment with the MUSCLE executable.

    Supports MUSCLE v5 (``-align``/``-output``) and v3 (``-in``/``-out``).
    """

    def __init__(self, muscle_path: Optional[Union[str, Path]] = None,
                 scratch_dir: Optional[Union[str, Path]] = None):
        config = get_config()
        self.muscle_path = Path(muscle_path) if muscle_path else config.muscle_path
        self.scratch_dir = Path(scratch_dir) if scratch_dir else config.scratch_dir

    def _version(self) -> str:
        try:
            completed = subprocess.run(
                [str(self.muscle_path), "-version"],
                capture_output=True, text=True, check=False,
            )
        except OSError as e:
            raise AlignmentUnavailableError(f"Cannot run MUSCLE at {self.muscle_path}: {e}") from e
        return (completed.stdout + completed.stderr).strip()

    def _command(self, infile: Path, outfile: Path) -> list:
        version = self._version()
        logger.debug(f"MUSCLE version: {version}")
        if "v3" in version or "MUSCLE 3" in version:
            return [str(self.muscle_path), "-in", str(infile), "-out", str(outfile), "-quiet"]
        return [str(self.muscle_path), "-align", str(infile), "-output", str(outfile)]

    def align(self, collection: SequenceCollection) -> SequenceCollection:
        """Align the nucleotide sequences of a collection.

        Returns:
            New collection with aligned sequences, title ``<title>_aligned``

        Raises:
            AlignmentUnavailableError: If MUSCLE is missing or fails
        """
        if not self.muscle_path:
            raise AlignmentUnavailableError(
                "MUSCLE not found. Set MUSCLE_PATH or ensure muscle is in PATH."
            )
        if collection.size == 0:
            return collection.copy()

        try:
            workdir = tempfile.TemporaryDirectory(dir=self.scratch_dir)
        except OSError as e:
            raise AlignmentUnavailableError(
                f"Cannot create a working directory in {self.scratch_dir}: {e}"
            ) from e

        with workdir as tmp:
            infile = Path(tmp) / "muscle_in.fasta"
            outfile = Path(tmp) / "muscle_aln.fasta"
            write_fasta(collection, infile)

            cmd = self._command(infile, outfile)
            logger.info(f"Aligning {collection.size} sequences with MUSCLE")
            logger.debug(f"Running: {' '.join(cmd)}")
            try:
                result = subprocess.run(cmd, capture_output=True, text=True, check=False)
            except OSError as e:
                raise AlignmentUnavailableError(f"Cannot run MUSCLE: {e}") from e

            if result.returncode != 0 or not outfile.exists():
                raise AlignmentUnavailableError(
                    f"MUSCLE failed (exit {result.returncode}): {result.stderr.strip()}"
                )
            aligned = read_fasta(outfile)

        # MUSCLE reorders records; keep the input order
        dna = {name: aligned.dna[name] for name in collection.dna if name in aligned.dna}
        return SequenceCollection(
            dna=dna,
            title=f"{collection.title}_aligned",
            file=collection.file,
        )

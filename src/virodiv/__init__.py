"""
virodiv: diversity and quality statistics for viral sequence populations

Locate sequences on HIV/SIV reference genomes, screen alignments for
APOBEC3G/F hypermutation, estimate Poisson minority-variant cutoffs and
compute entropy, nucleotide diversity and pairwise distance distributions.
"""

__version__ = "1.0.0"

from virodiv.config import Config, get_config
from virodiv.consensus import call_ambiguity, consensus
from virodiv.dedup import collapse, filter_similar_pid, unique_sequences
from virodiv.diversity import (
    column_entropy,
    nucleotide_pi,
    pairwise_distance_histogram,
    shannon_entropy,
    tn93,
)
from virodiv.errors import (
    AlignmentLengthError,
    AlignmentUnavailableError,
    DegenerateInputError,
    EmptyInputError,
    InputError,
    ReferenceOptionWarning,
    VirodivError,
)
from virodiv.fasta import read_aa_fasta, read_fasta, read_fastq, write_fasta
from virodiv.hypermut import detect_hypermutation
from virodiv.locator import filter_by_location, locate, sequence_locator
from virodiv.logging import setup_logging
from virodiv.models import (
    AlignmentResult,
    Direction,
    HypermutationRecord,
    HypermutationResult,
    LocatorResult,
    ReferenceGenome,
    SequenceCollection,
    SequenceType,
)
from virodiv.poisson import poisson_minority_cutoff
from virodiv.references import REFERENCE_GENOMES, load_reference
from virodiv.stats import PoissonModel, fisher_exact_test

__all__ = [
    "AlignmentLengthError",
    "AlignmentResult",
    "AlignmentUnavailableError",
    "Config",
    "DegenerateInputError",
    "Direction",
    "EmptyInputError",
    "HypermutationRecord",
    "HypermutationResult",
    "InputError",
    "LocatorResult",
    "PoissonModel",
    "REFERENCE_GENOMES",
    "ReferenceGenome",
    "ReferenceOptionWarning",
    "SequenceCollection",
    "SequenceType",
    "VirodivError",
    "call_ambiguity",
    "collapse",
    "column_entropy",
    "consensus",
    "detect_hypermutation",
    "filter_by_location",
    "filter_similar_pid",
    "fisher_exact_test",
    "get_config",
    "load_reference",
    "locate",
    "nucleotide_pi",
    "pairwise_distance_histogram",
    "poisson_minority_cutoff",
    "read_aa_fasta",
    "read_fasta",
    "read_fastq",
    "sequence_locator",
    "setup_logging",
    "shannon_entropy",
    "tn93",
    "unique_sequences",
    "write_fasta",
    "__version__",
]

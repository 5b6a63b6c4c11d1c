"""
Reference genome registry.

The registry is a read-only mapping built at import time. Sequences are
loaded on first use from ``<reference_dir>/<NAME>.fasta``; when the file is
missing they are downloaded from NCBI and cached there.
"""

import functools
import logging
import warnings
from dataclasses import replace
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Union

from Bio import Entrez, SeqIO

from .config import get_config
from .errors import AlignmentUnavailableError, ReferenceOptionWarning
from .models import ReferenceGenome

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE = "HXB2"

REFERENCE_GENOMES: Mapping[str, ReferenceGenome] = MappingProxyType({
    "HXB2": ReferenceGenome(
        name="HXB2",
        accession="K03455.1",
        description="HIV-1 isolate HXB2, complete genome",
        numbering="HXB2 numbering: 1-based positions on K03455",
    ),
    "NL43": ReferenceGenome(
        name="NL43",
        accession="AF324493.2",
        description="HIV-1 vector pNL4-3, complete sequence",
        numbering="NL4-3 numbering: 1-based positions on AF324493",
    ),
    "MAC239": ReferenceGenome(
        name="MAC239",
        accession="M33262.1",
        description="SIVmac239, complete proviral genome",
        numbering="SIVmac239 numbering: 1-based positions on M33262",
    ),
})


def resolve_reference_name(name: Optional[str]) -> str:
    """Normalize a reference identifier, falling back to HXB2.

    Unrecognized identifiers issue a ReferenceOptionWarning and are replaced
    by the default rather than raising.
    """
    if name is None:
        return DEFAULT_REFERENCE
    key = str(name).upper().replace("-", "").replace("_", "")
    if key in REFERENCE_GENOMES:
        return key

    message = f"Reference '{name}' not recognized; using {DEFAULT_REFERENCE}"
    logger.warning(message)
    warnings.warn(message, ReferenceOptionWarning, stacklevel=3)
    return DEFAULT_REFERENCE


def _read_reference_fasta(path: Path) -> str:
    record = SeqIO.read(str(path), "fasta")
    return str(record.seq).upper()


def _fetch_reference(reference: ReferenceGenome, path: Path, email: str) -> str:
    logger.info(f"Downloading {reference.name} ({reference.accession}) from NCBI")
    Entrez.email = email
    handle = Entrez.efetch(
        db="nucleotide", id=reference.accession, rettype="fasta", retmode="text"
    )
    try:
        record = SeqIO.read(handle, "fasta")
    finally:
        handle.close()

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(f">{reference.name} {record.description}\n{str(record.seq).upper()}\n")
    return str(record.seq).upper()


@functools.lru_cache(maxsize=None)
def _load_sequence(name: str, reference_dir: str, fetch: bool, email: str) -> str:
    reference = REFERENCE_GENOMES[name]
    path = Path(reference_dir) / f"{name}.fasta"

    try:
        if path.exists():
            logger.debug(f"Loading {name} from {path}")
            return _read_reference_fasta(path)
        if not fetch:
            raise AlignmentUnavailableError(
                f"Reference FASTA not found: {path} (downloads disabled)"
            )
        return _fetch_reference(reference, path, email)
    except AlignmentUnavailableError:
        raise
    except Exception as e:
        raise AlignmentUnavailableError(f"Could not load reference {name}: {e}") from e


def load_reference(
    name: Union[str, ReferenceGenome, None] = DEFAULT_REFERENCE,
    reference_dir: Optional[Union[str, Path]] = None,
    fetch: Optional[bool] = None,
) -> ReferenceGenome:
    """Return a ReferenceGenome with its sequence loaded.

    Args:
        name: Registry identifier, or a ReferenceGenome that already carries
            its sequence (returned unchanged)
        reference_dir: Directory of cached FASTA files (default from config)
        fetch: Download missing references from NCBI (default from config)

    Raises:
        AlignmentUnavailableError: If the sequence cannot be read or fetched
    """
    if isinstance(name, ReferenceGenome):
        if not name.sequence:
            raise AlignmentUnavailableError(f"Reference {name.name} has no sequence")
        return name

    config = get_config()
    key = resolve_reference_name(name)
    directory = Path(reference_dir) if reference_dir else config.reference_dir
    if fetch is None:
        fetch = config.fetch_references

    sequence = _load_sequence(key, str(directory), fetch, config.ncbi_email)
    return replace(REFERENCE_GENOMES[key], sequence=sequence)


def clear_reference_cache() -> None:
    """Forget loaded reference sequences (useful for testing)."""
    _load_sequence.cache_clear()

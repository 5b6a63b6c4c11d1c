"""
virodiv Configuration Module

Centralized configuration for reference data, external tools and the
statistical defaults used by the analyses.

Configuration Priority (highest to lowest):
1. Explicit function arguments
2. Environment variables
3. Auto-detected defaults

Environment Variables:
    VIRODIV_REFERENCE_DIR - Directory holding reference genome FASTA files
                            (default: ~/.virodiv/references)
    MUSCLE_PATH           - Path to the MUSCLE executable
    NCBI_EMAIL            - Email for NCBI Entrez queries (required by NCBI)
    VIRODIV_SCRATCH       - Scratch/temp directory for alignment files
    VIRODIV_ERROR_RATE    - Per-base sequencing error rate for Poisson cutoffs
    VIRODIV_FOLD_CUTOFF   - Fold multiplier for Poisson cutoffs
"""

import os
import shutil
import logging
import tempfile
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

# Singleton config instance
_config_instance: Optional["Config"] = None

DEFAULT_NCBI_EMAIL = "virodiv_user@example.com"


@dataclass
class Config:
    """
    virodiv configuration container.

    Attributes:
        reference_dir: Directory with cached reference genome FASTA files
        muscle_path: Path to the MUSCLE executable
        scratch_dir: Directory for temporary alignment files
        ncbi_email: Email for NCBI Entrez queries
        error_rate: Per-base sequencing error rate (Poisson minority cutoff)
        fold_cutoff: Fold multiplier applied to Poisson expectations
        fetch_references: Download missing reference genomes from NCBI
    """

    reference_dir: Optional[Path] = None
    muscle_path: Optional[Path] = None
    scratch_dir: Optional[Path] = None

    ncbi_email: str = DEFAULT_NCBI_EMAIL

    error_rate: float = 0.0001
    fold_cutoff: float = 20.0
    fetch_references: bool = True

    _initialized: bool = field(default=False, repr=False)

    def __post_init__(self):
        """Initialize configuration from environment and auto-detection."""
        if not self._initialized:
            self._load_from_environment()
            self._auto_detect_paths()
            self._initialized = True

    def _load_from_environment(self) -> None:
        """Load configuration from environment variables."""

        if os.environ.get("VIRODIV_REFERENCE_DIR"):
            self.reference_dir = Path(os.environ["VIRODIV_REFERENCE_DIR"])

        if os.environ.get("MUSCLE_PATH"):
            self.muscle_path = Path(os.environ["MUSCLE_PATH"])

        if os.environ.get("VIRODIV_SCRATCH"):
            self.scratch_dir = Path(os.environ["VIRODIV_SCRATCH"])
        elif os.environ.get("TMPDIR"):
            self.scratch_dir = Path(os.environ["TMPDIR"])

        if os.environ.get("NCBI_EMAIL"):
            self.ncbi_email = os.environ["NCBI_EMAIL"]
        elif os.environ.get("ENTREZ_EMAIL"):
            self.ncbi_email = os.environ["ENTREZ_EMAIL"]

        if os.environ.get("VIRODIV_ERROR_RATE"):
            try:
                self.error_rate = float(os.environ["VIRODIV_ERROR_RATE"])
            except ValueError:
                logger.warning(
                    f"Ignoring invalid VIRODIV_ERROR_RATE: {os.environ['VIRODIV_ERROR_RATE']}"
                )

        if os.environ.get("VIRODIV_FOLD_CUTOFF"):
            try:
                self.fold_cutoff = float(os.environ["VIRODIV_FOLD_CUTOFF"])
            except ValueError:
                logger.warning(
                    f"Ignoring invalid VIRODIV_FOLD_CUTOFF: {os.environ['VIRODIV_FOLD_CUTOFF']}"
                )

    def _auto_detect_paths(self) -> None:
        """Auto-detect paths for tools if not explicitly configured."""

        if not self.muscle_path:
            muscle_cmd = shutil.which("muscle")
            if muscle_cmd:
                self.muscle_path = Path(muscle_cmd)

        if not self.reference_dir:
            self.reference_dir = Path.home() / ".virodiv" / "references"

        if not self.scratch_dir:
            self.scratch_dir = Path(tempfile.gettempdir())

    def validate(self, require_muscle: bool = False) -> tuple[bool, list[str]]:
        """
        Validate configuration.

        Args:
            require_muscle: Whether the MUSCLE executable is required

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        errors = []

        if require_muscle:
            if not self.muscle_path:
                errors.append("MUSCLE not found. Set MUSCLE_PATH or ensure muscle is in PATH.")
            elif not self.muscle_path.exists():
                errors.append(f"MUSCLE executable not found: {self.muscle_path}")

        if not 0 <= self.error_rate < 1:
            errors.append(f"Error rate must be in [0, 1): {self.error_rate}")

        if self.fold_cutoff <= 0:
            errors.append(f"Fold cutoff must be positive: {self.fold_cutoff}")

        if self.fetch_references and self.ncbi_email == DEFAULT_NCBI_EMAIL:
            logger.debug("NCBI_EMAIL not set; using placeholder address for Entrez")

        return len(errors) == 0, errors

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary."""
        return {
            "reference_dir": str(self.reference_dir) if self.reference_dir else None,
            "muscle_path": str(self.muscle_path) if self.muscle_path else None,
            "scratch_dir": str(self.scratch_dir) if self.scratch_dir else None,
            "ncbi_email": self.ncbi_email,
            "error_rate": self.error_rate,
            "fold_cutoff": self.fold_cutoff,
            "fetch_references": self.fetch_references,
        }

    def print_status(self) -> None:
        """Print configuration status to stdout."""
        print("virodiv Configuration Status")
        print("=" * 50)

        def status_icon(path: Optional[Path]) -> str:
            if path is None:
                return "[ ] Not configured"
            elif path.exists():
                return f"[✓] {path}"
            else:
                return f"[✗] {path} (NOT FOUND)"

        print(f"References:  {status_icon(self.reference_dir)}")
        print(f"MUSCLE:      {status_icon(self.muscle_path)}")
        print(f"Scratch:     {status_icon(self.scratch_dir)}")
        print(f"NCBI Email:  {self.ncbi_email}")
        print(f"Error rate:  {self.error_rate}")
        print(f"Fold cutoff: {self.fold_cutoff}")
        print("=" * 50)


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config: The singleton configuration instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def reset_config() -> None:
    """Reset the global configuration instance (useful for testing)."""
    global _config_instance
    _config_instance = None

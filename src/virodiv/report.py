"""
Tabular reports for locator, hypermutation and entropy results.

Tables are pandas DataFrames; the writers save them as CSV.
"""

from pathlib import Path
from typing import Dict, Iterable, Union

import pandas as pd

from .models import HypermutationRecord, LocatorRow

LOCATOR_COLUMNS = [
    "title",
    "sequence_identifier",
    "reference_id",
    "direction",
    "start",
    "end",
    "percent_similarity",
    "contains_indel",
    "aligned_query",
    "aligned_reference",
]

HYPERMUTATION_COLUMNS = [
    "sequence_identifier",
    "a",
    "b",
    "c",
    "d",
    "rate_ratio",
    "p_value",
    "hypermutated",
    "poisson_outlier",
]


def locator_table(rows: Iterable[LocatorRow], precision: int = 2) -> pd.DataFrame:
    """One row per located sequence, columns as in LOCATOR_COLUMNS."""
    records = [
        {
            "title": row.title,
            "sequence_identifier": row.identifier,
            "reference_id": row.result.reference,
            "direction": row.result.direction.value,
            "start": row.result.start,
            "end": row.result.end,
            "percent_similarity": round(row.result.similarity, precision),
            "contains_indel": row.result.indel,
            "aligned_query": row.result.aligned_query,
            "aligned_reference": row.result.aligned_reference,
        }
        for row in rows
    ]
    return pd.DataFrame(records, columns=LOCATOR_COLUMNS)


def hypermutation_table(records: Iterable[HypermutationRecord], precision: int = 2) -> pd.DataFrame:
    """One row per sequence; the rate ratio is rounded, the p-value is not."""
    data = [
        {
            "sequence_identifier": r.identifier,
            "a": r.a,
            "b": r.b,
            "c": r.c,
            "d": r.d,
            "rate_ratio": round(r.rate_ratio, precision),
            "p_value": r.p_value,
            "hypermutated": r.hypermutated,
            "poisson_outlier": r.poisson_outlier,
        }
        for r in records
    ]
    return pd.DataFrame(data, columns=HYPERMUTATION_COLUMNS)


def entropy_table(entropy: Dict[int, float]) -> pd.DataFrame:
    """Two columns: 1-based position and Shannon entropy."""
    return pd.DataFrame(
        {"position": list(entropy.keys()), "entropy": list(entropy.values())}
    )


def write_table(df: pd.DataFrame, output: Union[str, Path]) -> Path:
    """Write a report table as CSV with a header row."""
    path = Path(output)
    df.to_csv(path, index=False)
    return path


def write_locator_report(rows: Iterable[LocatorRow], output: Union[str, Path]) -> Path:
    return write_table(locator_table(rows), output)


def write_hypermutation_report(records: Iterable[HypermutationRecord], output: Union[str, Path]) -> Path:
    return write_table(hypermutation_table(records), output)

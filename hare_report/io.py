"""I/O utilities for the Bonanza Creek snowshoe hare trapping table."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from .config import DEFAULT_SITE_LABELS

REQUIRED_COLUMNS = ("date", "grid", "sex", "age", "weight", "hindft")
CODE_COLUMNS = ("grid", "sex", "age")
NUMERIC_COLUMNS = ("weight", "hindft")


class HareDataError(ValueError):
    """Raised when the trapping table does not have the expected shape."""


def normalize_column_names(columns: Iterable[str]) -> List[str]:
    """
    Lowercase snake_case column names.

    Every run of characters outside ``[a-z0-9]`` collapses to one underscore,
    so ``"Hind Ft."`` becomes ``"hind_ft"``.
    """
    names = []
    for col in columns:
        name = re.sub(r"[^a-z0-9]+", "_", str(col).strip().lower()).strip("_")
        names.append(name)
    return names


def site_label(code: Optional[str], labels: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Full trapping-grid name for a grid code; unknown codes pass through."""
    if code is None or (isinstance(code, float) and np.isnan(code)):
        return None
    labels = DEFAULT_SITE_LABELS if labels is None else labels
    return labels.get(code, code)


def _clean_codes(series: pd.Series) -> pd.Series:
    cleaned = series.str.strip().str.lower()
    return cleaned.replace("", np.nan)


def load_hares(
    path: Path,
    date_format: str = "%m/%d/%y",
    site_labels: Optional[Dict[str, str]] = None,
) -> pd.DataFrame:
    """
    Read the trapping table and derive ``year`` and ``site``.

    Rows whose date cannot be parsed keep ``NaT``/missing year; they still
    count toward totals that do not need a year.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Hare data file not found: {path}. Download bonanza_hares.csv from EDI package "
            "knb-lter-bnz.55, or pass --fetch-url with its entity URL."
        )

    df = pd.read_csv(path, dtype=str, keep_default_na=True)
    df.columns = normalize_column_names(df.columns)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise HareDataError(f"{path.name} is missing required column(s): {', '.join(missing)}")

    for col in CODE_COLUMNS:
        df[col] = _clean_codes(df[col])
    for col in NUMERIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    df["date"] = pd.to_datetime(df["date"].str.strip(), format=date_format, errors="coerce")
    if len(df) and df["date"].isna().all():
        raise HareDataError(f"No dates in {path.name} match format {date_format!r}")
    df["year"] = df["date"].dt.year.astype("Int64")

    labels = DEFAULT_SITE_LABELS if site_labels is None else site_labels
    df["site"] = df["grid"].map(lambda code: site_label(code, labels))
    return df

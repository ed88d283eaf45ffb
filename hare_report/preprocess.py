"""Row selection for the juvenile analysis."""

from __future__ import annotations

from typing import Tuple

import numpy as np
import pandas as pd

SEX_LABELS = {"f": "Female", "m": "Male"}
UNKNOWN_SEX = "Unknown"
SEX_ORDER = ("Female", "Male")


def filter_age(df: pd.DataFrame, age_code: str = "j") -> pd.DataFrame:
    """Keep rows whose (normalized) age code equals ``age_code``."""
    mask = df["age"].eq(age_code.strip().lower())
    return df.loc[mask].copy()


def label_sex(df: pd.DataFrame) -> pd.DataFrame:
    """Add ``sex_label``; missing or ambiguous codes become ``Unknown``."""
    out = df.copy()
    out["sex_label"] = out["sex"].map(SEX_LABELS).fillna(UNKNOWN_SEX)
    return out


def complete_weights_by_sex(df: pd.DataFrame) -> Tuple[pd.DataFrame, int]:
    """
    Rows usable for the male/female weight comparison.

    Returns the retained rows and how many rows were dropped for lacking a
    known sex or a finite weight.
    """
    if "sex_label" not in df.columns:
        df = label_sex(df)
    keep = df["sex_label"].isin(SEX_ORDER) & np.isfinite(df["weight"].astype(float))
    return df.loc[keep].copy(), int((~keep).sum())


def complete_weight_hindfoot(df: pd.DataFrame) -> Tuple[pd.DataFrame, int]:
    """Rows with both a finite weight and a finite hindfoot length."""
    weight = df["weight"].astype(float)
    hindft = df["hindft"].astype(float)
    keep = np.isfinite(weight) & np.isfinite(hindft)
    return df.loc[keep].copy(), int((~keep).sum())

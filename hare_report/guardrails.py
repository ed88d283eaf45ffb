"""
Guardrails for reporting: keep NaN/Inf out of the narrative and summary.

A few statistics are mathematically undefined on degenerate but valid input
(a perfect linear fit, a single year of counts, a zero female mean). Those
key paths are listed in ``UNDEFINED_ALLOWED`` and are written as ``null``;
any other non-finite number stops the run before outputs are written.
"""

from __future__ import annotations

import math
from fnmatch import fnmatchcase
from typing import Any, Dict, Iterable

UNDEFINED_ALLOWED = (
    "annual_summary.counts.sd",              # one year of counts
    "regression.pearson_t",                  # |r| == 1
    "weight_comparison.percent_difference",  # female mean of zero
    "weights_by_sex.*.sd",                   # single animal in a group
)


def flatten_metrics(obj: Any, prefix: str = "") -> Dict[str, Any]:
    """Map dotted key paths (``a.b[0].c``) to leaf values."""
    flat: Dict[str, Any] = {}
    if isinstance(obj, dict):
        for key, value in obj.items():
            flat.update(flatten_metrics(value, f"{prefix}.{key}" if prefix else str(key)))
    elif isinstance(obj, (list, tuple)):
        for i, value in enumerate(obj):
            flat.update(flatten_metrics(value, f"{prefix}[{i}]"))
    else:
        flat[prefix] = obj
    return flat


def _is_non_finite(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isnan(value) or math.isinf(value)


def _allowed(keypath: str, patterns: Iterable[str]) -> bool:
    return any(fnmatchcase(keypath, p) for p in patterns)


def non_finite_keys(metrics: dict) -> Dict[str, float]:
    """Key paths whose numeric value is NaN or infinite."""
    return {k: v for k, v in flatten_metrics(metrics).items() if _is_non_finite(v)}


def scrub_undefined(metrics: Any, patterns: Iterable[str] = UNDEFINED_ALLOWED, prefix: str = "") -> Any:
    """
    Return a copy of ``metrics`` with allowed non-finite values set to None.

    Values at key paths that do not match ``patterns`` are left untouched so
    :func:`assert_finite_metrics` can still reject them.
    """
    patterns = tuple(patterns)
    if isinstance(metrics, dict):
        return {
            k: scrub_undefined(v, patterns, f"{prefix}.{k}" if prefix else str(k))
            for k, v in metrics.items()
        }
    if isinstance(metrics, list):
        return [scrub_undefined(v, patterns, f"{prefix}[{i}]") for i, v in enumerate(metrics)]
    if _is_non_finite(metrics) and _allowed(prefix, patterns):
        return None
    return metrics


def assert_finite_metrics(metrics: dict, allow_null_keys: Iterable[str] = UNDEFINED_ALLOWED) -> None:
    """
    Raise ``ValueError`` if any number in ``metrics`` is NaN or infinite.

    Args:
        metrics: nested dictionary of results (the summary.json contents)
        allow_null_keys: key-path patterns (``fnmatch`` syntax) that may be
            non-finite
    """
    patterns = tuple(allow_null_keys)
    bad = {k: v for k, v in non_finite_keys(metrics).items() if not _allowed(k, patterns)}
    if bad:
        msg = "; ".join(f"{k}={v}" for k, v in bad.items())
        raise ValueError(f"Non-finite metric(s) encountered: {msg}")

"""
Statistics for the juvenile hare report.

Computes:
1. Descriptive statistics (n, mean, median, SD, min, max)
2. Annual juvenile trap counts and their summary
3. Weight summaries by sex, and by site and sex
4. Welch two-sample t-test with Cohen's d (male vs female weight)
5. OLS regression of weight on hindfoot length with Pearson's r
"""

from dataclasses import dataclass, asdict
from typing import Dict, Iterable, Optional

import numpy as np
import pandas as pd
from scipy import stats as scipy_stats

from .preprocess import SEX_ORDER, UNKNOWN_SEX


@dataclass
class DescriptiveStats:
    """Summary of one numeric sample (SD uses ddof=1)."""
    n: int
    mean: float
    median: float
    sd: float
    min: float
    max: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class AnnualCountSummary:
    """Descriptive statistics over per-year trap counts."""
    total: int
    n_years: int
    counts: DescriptiveStats
    peak_year: int
    peak_count: int
    min_year: int
    min_count: int

    def to_dict(self) -> Dict:
        out = asdict(self)
        out["counts"] = self.counts.to_dict()
        return out


@dataclass
class WeightComparison:
    """Male vs female juvenile weight comparison."""
    n_male: int
    n_female: int
    mean_male: float
    mean_female: float
    difference: float           # male - female, grams
    percent_difference: float   # relative to the female mean
    t_statistic: float
    df: float                   # Welch-Satterthwaite
    p_value: float
    cohens_d: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class RegressionResult:
    """OLS fit of weight (g) on hindfoot length (mm)."""
    n: int
    slope: float
    intercept: float
    slope_se: float
    r_squared: float
    residual_se: float
    p_value: float
    pearson_r: float
    pearson_t: float
    pearson_df: int
    pearson_p: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    def predict(self, hindft: np.ndarray) -> np.ndarray:
        return self.intercept + self.slope * np.asarray(hindft, dtype=float)


def _finite(values: Iterable[float]) -> np.ndarray:
    arr = np.asarray(pd.Series(values, dtype=float), dtype=float)
    return arr[np.isfinite(arr)]


def describe(values: Iterable[float]) -> DescriptiveStats:
    """Descriptive statistics, NaNs dropped; empty input gives NaN fields."""
    arr = _finite(values)
    n = arr.size
    if n == 0:
        return DescriptiveStats(n=0, mean=np.nan, median=np.nan, sd=np.nan, min=np.nan, max=np.nan)
    return DescriptiveStats(
        n=int(n),
        mean=float(np.mean(arr)),
        median=float(np.median(arr)),
        sd=float(np.std(arr, ddof=1)) if n > 1 else np.nan,
        min=float(np.min(arr)),
        max=float(np.max(arr)),
    )


def annual_counts(juveniles: pd.DataFrame,
                  fill_missing_years: Optional[Iterable[int]] = None) -> pd.Series:
    """
    Number of juvenile traps per year, sorted by year.

    Years given in ``fill_missing_years`` but absent from the data are added
    with a count of zero.
    """
    years = juveniles["year"].dropna().astype(int)
    counts = years.value_counts().sort_index()
    if fill_missing_years is not None:
        wanted = sorted(set(int(y) for y in fill_missing_years) | set(counts.index))
        counts = counts.reindex(wanted, fill_value=0)
    counts.index.name = "year"
    counts.name = "count"
    return counts.astype(int)


def summarize_annual_counts(counts: pd.Series) -> AnnualCountSummary:
    """Summary of per-year counts; ties on peak/minimum go to the earliest year."""
    if counts.empty:
        raise ValueError("No annual counts to summarize")
    counts = counts.sort_index()
    return AnnualCountSummary(
        total=int(counts.sum()),
        n_years=int(counts.size),
        counts=describe(counts.values),
        peak_year=int(counts.idxmax()),
        peak_count=int(counts.max()),
        min_year=int(counts.idxmin()),
        min_count=int(counts.min()),
    )


def weight_summary_by_sex(df: pd.DataFrame) -> pd.DataFrame:
    """Mean, median, SD and n of weight for Female and Male rows only."""
    known = df[df["sex_label"].isin(SEX_ORDER)]
    rows = {}
    for sex in SEX_ORDER:
        d = describe(known.loc[known["sex_label"] == sex, "weight"])
        rows[sex] = {"mean": d.mean, "median": d.median, "sd": d.sd, "n": d.n}
    table = pd.DataFrame.from_dict(rows, orient="index")
    table.index.name = "sex"
    return table


def weight_summary_by_site_sex(df: pd.DataFrame) -> pd.DataFrame:
    """Weight summary per (site, sex); the Unknown sex group is kept."""
    records = []
    for (site, sex), group in df.groupby(["site", "sex_label"], sort=True):
        d = describe(group["weight"])
        records.append({"site": site, "sex": sex, "mean": d.mean, "sd": d.sd, "n": d.n})
    if not records:
        return pd.DataFrame(columns=["site", "sex", "mean", "sd", "n"])
    table = pd.DataFrame.from_records(records)
    order = {s: i for i, s in enumerate(SEX_ORDER + (UNKNOWN_SEX,))}
    table["_order"] = table["sex"].map(order)
    return table.sort_values(["site", "_order"]).drop(columns="_order").reset_index(drop=True)


def cohens_d(x: Iterable[float], y: Iterable[float]) -> float:
    """
    Cohen's d of ``x`` relative to ``y`` using the pooled standard deviation.

    d = (mean(x) - mean(y)) / sqrt(((nx-1) sx^2 + (ny-1) sy^2) / (nx + ny - 2))
    """
    x = _finite(x)
    y = _finite(y)
    nx, ny = x.size, y.size
    if nx < 2 or ny < 2:
        raise ValueError("Cohen's d needs at least two values per group")
    pooled_var = ((nx - 1) * np.var(x, ddof=1) + (ny - 1) * np.var(y, ddof=1)) / (nx + ny - 2)
    if pooled_var <= 0:
        raise ValueError("Pooled standard deviation is zero")
    return float((np.mean(x) - np.mean(y)) / np.sqrt(pooled_var))


def welch_df(x: np.ndarray, y: np.ndarray) -> float:
    """Welch-Satterthwaite degrees of freedom."""
    vx = np.var(x, ddof=1) / x.size
    vy = np.var(y, ddof=1) / y.size
    return float((vx + vy) ** 2 / (vx ** 2 / (x.size - 1) + vy ** 2 / (y.size - 1)))


def compare_weights(male: Iterable[float], female: Iterable[float]) -> WeightComparison:
    """Welch t-test and Cohen's d for male vs female juvenile weights."""
    male = _finite(male)
    female = _finite(female)
    d = cohens_d(male, female)
    result = scipy_stats.ttest_ind(male, female, equal_var=False)
    mean_m = float(np.mean(male))
    mean_f = float(np.mean(female))
    diff = mean_m - mean_f
    return WeightComparison(
        n_male=int(male.size),
        n_female=int(female.size),
        mean_male=mean_m,
        mean_female=mean_f,
        difference=diff,
        # undefined when the female mean is zero
        percent_difference=float(100.0 * diff / mean_f) if mean_f != 0 else np.nan,
        t_statistic=float(result.statistic),
        df=welch_df(male, female),
        p_value=float(result.pvalue),
        cohens_d=d,
    )


def fit_weight_hindfoot(df: pd.DataFrame) -> RegressionResult:
    """Simple linear regression weight ~ hindft, plus Pearson's r."""
    x = df["hindft"].to_numpy(dtype=float)
    y = df["weight"].to_numpy(dtype=float)
    mask = np.isfinite(x) & np.isfinite(y)
    x, y = x[mask], y[mask]
    n = x.size
    if n < 3:
        raise ValueError(f"Regression needs at least three complete rows, got {n}")
    if np.ptp(x) == 0:
        raise ValueError("Hindfoot length is constant; slope is undefined")

    fit = scipy_stats.linregress(x, y)
    residuals = y - (fit.intercept + fit.slope * x)
    dof = n - 2
    r = float(fit.rvalue)
    r2 = r ** 2
    # t is unbounded for a perfect fit; rounding can leave r2 a hair under 1
    pearson_t = r * np.sqrt(dof / (1.0 - r2)) if 1.0 - r2 > 1e-12 else np.copysign(np.inf, r)

    return RegressionResult(
        n=int(n),
        slope=float(fit.slope),
        intercept=float(fit.intercept),
        slope_se=float(fit.stderr),
        r_squared=float(r2),
        residual_se=float(np.sqrt(np.sum(residuals ** 2) / dof)),
        p_value=float(fit.pvalue),
        pearson_r=r,
        pearson_t=float(pearson_t),
        pearson_df=int(dof),
        pearson_p=float(scipy_stats.pearsonr(x, y)[1]),
    )

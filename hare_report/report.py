"""
Report generation for the juvenile snowshoe hare analysis.

Produces the Markdown narrative (two tables, four figures, inline results)
and the JSON summary of every number quoted in it.
"""

from __future__ import annotations

import json
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import numpy as np
import pandas as pd

from .config import ReportConfig
from .stats import AnnualCountSummary, RegressionResult, WeightComparison

CITATION = (
    "Kielland, K., F.S. Chapin, R.W. Ruess, and Bonanza Creek LTER. 2017. "
    "Snowshoe hare physical data in Bonanza Creek Experimental Forest: 1999-Present. "
    "Environmental Data Initiative, package knb-lter-bnz.55."
)


def _fmt(value: float, digits: int = 2) -> str:
    if value is None or not math.isfinite(value):
        return "NA"
    return f"{value:.{digits}f}"


def format_p_value(p: float) -> str:
    """Narrative form of a p-value."""
    if p < 0.001:
        return "p < 0.001"
    return f"p = {p:.3f}"


def effect_size_label(d: float) -> str:
    """Conventional magnitude label for Cohen's d."""
    d = abs(d)
    if d < 0.2:
        return "negligible"
    if d < 0.5:
        return "small"
    if d < 0.8:
        return "medium"
    return "large"


def correlation_label(r: float) -> str:
    r = abs(r)
    if r < 0.1:
        return "negligible"
    if r < 0.3:
        return "weak"
    if r < 0.5:
        return "moderate"
    return "strong"


def format_annual_counts_table(counts: pd.Series, summary: AnnualCountSummary) -> str:
    """Table 1: summary statistics of the annual juvenile trap counts."""
    c = summary.counts
    lines = [
        "**Table 1.** Summary statistics of annual juvenile hare trap counts "
        f"({counts.index.min()}-{counts.index.max()}).",
        "",
        "| Years | Total | Mean | Median | SD | Min | Max |",
        "|------:|------:|-----:|-------:|---:|----:|----:|",
        f"| {summary.n_years} | {summary.total} | {_fmt(c.mean, 1)} | {_fmt(c.median, 1)} "
        f"| {_fmt(c.sd, 1)} | {c.min:.0f} | {c.max:.0f} |",
        "",
        "| Year | " + " | ".join(str(y) for y in counts.index) + " |",
        "|-----:|" + "|".join("-----:" for _ in counts.index) + "|",
        "| Count | " + " | ".join(str(int(v)) for v in counts.values) + " |",
    ]
    return "\n".join(lines)


def format_weight_table(summary_by_sex: pd.DataFrame) -> str:
    """Table 2: juvenile weight (g) by sex."""
    lines = [
        "**Table 2.** Juvenile snowshoe hare weight (g) by sex.",
        "",
        "| Sex | Mean (g) | Median (g) | SD (g) | Sample size |",
        "|-----|---------:|-----------:|-------:|------------:|",
    ]
    for sex, row in summary_by_sex.iterrows():
        lines.append(
            f"| {sex} | {_fmt(row['mean'])} | {_fmt(row['median'])} "
            f"| {_fmt(row['sd'])} | {int(row['n'])} |"
        )
    return "\n".join(lines)


def _none_if_nan(value: Any) -> Any:
    if isinstance(value, (float, np.floating)) and not np.isfinite(value):
        return None
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    return value


def build_summary(n_records: int,
                  n_juveniles: int,
                  counts: pd.Series,
                  annual: AnnualCountSummary,
                  summary_by_sex: pd.DataFrame,
                  site_sex: pd.DataFrame,
                  n_excluded_sex: int,
                  comparison: WeightComparison,
                  n_excluded_regression: int,
                  regression: RegressionResult,
                  figures: Mapping[str, Path],
                  output_dir: Path) -> Dict[str, Any]:
    """JSON-serialisable dictionary of every reported number."""
    weights_by_sex = {
        str(sex): {k: _none_if_nan(v) if k != "n" else int(v) for k, v in row.items()}
        for sex, row in summary_by_sex.iterrows()
    }
    site_rows = [
        {k: _none_if_nan(v) for k, v in rec.items()}
        for rec in site_sex.to_dict(orient="records")
    ]
    return {
        "n_records": int(n_records),
        "n_juveniles": int(n_juveniles),
        "annual_counts": {str(int(y)): int(c) for y, c in counts.items()},
        "annual_summary": annual.to_dict(),
        "weights_by_sex": weights_by_sex,
        "weights_by_site_sex": site_rows,
        "n_excluded_sex_comparison": int(n_excluded_sex),
        "weight_comparison": comparison.to_dict(),
        "n_excluded_regression": int(n_excluded_regression),
        "regression": regression.to_dict(),
        "figures": {k: Path(p).relative_to(output_dir).as_posix() for k, p in figures.items()},
    }


def write_summary(summary: Dict[str, Any], path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2, sort_keys=True)
        f.write("\n")


def generate_report(config: ReportConfig,
                    summary: Dict[str, Any],
                    counts: pd.Series,
                    annual: AnnualCountSummary,
                    summary_by_sex: pd.DataFrame,
                    comparison: WeightComparison,
                    regression: RegressionResult,
                    output_path: Path,
                    missing_years: Optional[list] = None,
                    generated_at: Optional[datetime] = None) -> str:
    """
    Write the Markdown report and return its content.

    Parameters
    ----------
    config : ReportConfig
        Run configuration (alpha, site names)
    summary : dict
        Output of :func:`build_summary`; figure paths are taken from it
    counts : Series
        Juvenile traps per year
    annual, comparison, regression
        Computed statistics
    summary_by_sex : DataFrame
        Table 2 contents
    output_path : Path
        Destination of the Markdown file
    missing_years : list, optional
        Study years with no juvenile records
    generated_at : datetime, optional
        Timestamp written in the header (defaults to now)
    """
    alpha = config.analysis.alpha
    figs = summary["figures"]
    generated_at = generated_at or datetime.now()
    cmp_ = comparison
    reg = regression
    sig_sex = cmp_.p_value < alpha
    sites = ", ".join(config.site_order())

    lines = [
        "# Juvenile snowshoe hares in the Bonanza Creek Experimental Forest",
        "",
        f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        "## 1. Introduction",
        "",
        "This report explores juvenile snowshoe hare (*Lepus americanus*) trapping records",
        f"from three grids in the Bonanza Creek Experimental Forest, Alaska ({sites}).",
        "It describes annual juvenile trap counts, compares juvenile weights between",
        "sexes and sites, and examines the relationship between hindfoot length and weight.",
        "",
        "## 2. Data and methods",
        "",
        f"The trapping table contains {summary['n_records']} capture records, of which",
        f"{summary['n_juveniles']} are juveniles (age code `{config.analysis.age_code}`).",
        "Male and female weights are compared with a two-sample Welch t-test and the",
        "effect size is given as Cohen's d (pooled standard deviation). The relationship",
        "between weight and hindfoot length is described with ordinary least squares",
        f"simple linear regression and Pearson's r. Significance level is {alpha}.",
        "",
        "## 3. Results",
        "",
        "### A. Annual juvenile hare trap counts",
        "",
        format_annual_counts_table(counts, annual),
        "",
        f"![Figure 1]({figs['annual_counts']})",
        "",
        "**Figure 1.** Number of juvenile snowshoe hares trapped each year.",
        "",
        f"Juvenile trap counts peaked at {annual.peak_count} in {annual.peak_year} and fell to",
        f"a minimum of {annual.min_count} in {annual.min_year}. Across the {annual.n_years} years",
        f"with juvenile records the mean annual count was {_fmt(annual.counts.mean, 1)}",
        f"(median {_fmt(annual.counts.median, 1)}, SD {_fmt(annual.counts.sd, 1)}).",
    ]
    if missing_years:
        lines.append(
            "No juveniles were recorded in "
            + ", ".join(str(y) for y in missing_years) + "."
        )
    lines.extend([
        "Counts reflect trapping effort as well as population size, so future work",
        "should standardise by the number of trap days or traps per year.",
        "",
        "### B. Juvenile weights by sex and site",
        "",
        f"![Figure 2]({figs['weight_by_site']})",
        "",
        "**Figure 2.** Juvenile weight (g) by sex at each trapping site. Boxes show the",
        "median and interquartile range; points are individual hares; diamonds are group means.",
        "Hares without a recorded sex are shown as `Unknown`.",
        "",
        "### C. Juvenile weight comparison: male and female",
        "",
        format_weight_table(summary_by_sex),
        "",
        f"![Figure 3]({figs['weight_distribution']})",
        "",
        "**Figure 3.** Distribution of male and female juvenile weights (histograms and",
        "normal Q-Q plots).",
        "",
        f"On average male juveniles weighed {_fmt(cmp_.mean_male)} g and female juveniles",
        f"{_fmt(cmp_.mean_female)} g, an absolute difference of {_fmt(abs(cmp_.difference))} g",
        f"({_fmt(abs(cmp_.percent_difference), 1)}% of the female mean).",
        f"The difference is {'significant' if sig_sex else 'not significant'} "
        f"(Welch's t({_fmt(cmp_.df, 1)}) = {_fmt(cmp_.t_statistic)}, {format_p_value(cmp_.p_value)})",
        f"and the effect size is {effect_size_label(cmp_.cohens_d)} (Cohen's d = {_fmt(cmp_.cohens_d)}).",
    ])
    if summary["n_excluded_sex_comparison"]:
        lines.append(
            f"{summary['n_excluded_sex_comparison']} juvenile records lacking a sex or weight "
            "were excluded from this comparison."
        )
    lines.extend([
        "",
        "### D. Relationship between juvenile weight and hindfoot length",
        "",
        f"![Figure 4]({figs['weight_hindfoot']})",
        "",
        "**Figure 4.** Juvenile weight (g) against hindfoot length (mm) with the fitted",
        "linear model.",
        "",
        f"Simple linear regression on {reg.n} juveniles gives",
        f"weight = {_fmt(reg.slope)} x hindfoot + ({_fmt(reg.intercept)}), so on average each",
        f"additional millimetre of hindfoot length goes with {_fmt(reg.slope)} g more weight",
        f"(slope SE {_fmt(reg.slope_se)}, {format_p_value(reg.p_value)}).",
        f"Hindfoot length explains {_fmt(100 * reg.r_squared, 1)}% of the variance in weight",
        f"(R$^2$ = {_fmt(reg.r_squared)}, residual SE {_fmt(reg.residual_se, 1)} g).",
        f"The correlation is {correlation_label(reg.pearson_r)} and "
        f"{'positive' if reg.pearson_r >= 0 else 'negative'} (Pearson's r = {_fmt(reg.pearson_r)},",
        f"t({reg.pearson_df}) = {_fmt(reg.pearson_t)}, {format_p_value(reg.pearson_p)}).",
        "The constant-variance assumption of the linear model should be checked against",
        "the spread of weights across hindfoot lengths in Figure 4 before using the fit",
        "for prediction.",
    ])
    if summary["n_excluded_regression"]:
        lines.append(
            f"{summary['n_excluded_regression']} juvenile records lacking weight or hindfoot "
            "length were excluded from the regression."
        )
    lines.extend([
        "",
        "## 4. Summary",
        "",
        f"- Juvenile trap counts peaked in {annual.peak_year} ({annual.peak_count} hares) "
        f"and were lowest in {annual.min_year} ({annual.min_count}).",
        f"- Male juveniles were {'heavier' if cmp_.difference > 0 else 'lighter'} than females by "
        f"{_fmt(abs(cmp_.difference))} g ({effect_size_label(cmp_.cohens_d)} effect, "
        f"{format_p_value(cmp_.p_value)}).",
        f"- Hindfoot length and weight show a {correlation_label(reg.pearson_r)} correlation "
        f"(r = {_fmt(reg.pearson_r)}); hindfoot length explains {_fmt(100 * reg.r_squared, 1)}% "
        "of the variance in weight.",
        "",
        "## 5. Citation",
        "",
        CITATION,
        "",
    ])

    content = "\n".join(lines)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(content)

    return content

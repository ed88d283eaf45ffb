"""
Figures for the juvenile hare report.

All figures are written as PNG with the non-interactive Agg backend.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Sequence

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from scipy import stats as scipy_stats

from .config import PlotConfig
from .preprocess import SEX_ORDER, UNKNOWN_SEX
from .stats import RegressionResult

SEX_COLORS = {"Female": "darkorange", "Male": "steelblue", UNKNOWN_SEX: "gray"}

FIGURE_NAMES = {
    "annual_counts": "juvenile_annual_counts.png",
    "weight_by_site": "juvenile_weight_by_site.png",
    "weight_distribution": "juvenile_weight_distribution.png",
    "weight_hindfoot": "juvenile_weight_hindfoot.png",
}


def _save(fig, output_path: Path, dpi: int) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    # Fixed metadata keeps repeated renders byte-identical
    fig.savefig(output_path, dpi=dpi, metadata={"Software": None})
    plt.close(fig)
    return output_path


def plot_annual_counts(counts: pd.Series, output_path: Path, dpi: int = 150) -> Path:
    """Bar chart of juvenile hare traps per year."""
    fig, ax = plt.subplots(figsize=(8, 4.5))
    years = counts.index.astype(int)
    ax.bar(years, counts.values, color="seagreen", edgecolor="darkgreen")
    ax.set_xticks(years)
    ax.set_xticklabels([str(y) for y in years], rotation=45)
    ax.set_xlabel("Year", fontsize=12)
    ax.set_ylabel("Juvenile hares trapped", fontsize=12)
    ax.set_title("Annual juvenile snowshoe hare trap counts", fontsize=13)
    ax.grid(axis="y", alpha=0.3)
    return _save(fig, output_path, dpi)


def plot_weight_by_site(juveniles: pd.DataFrame,
                        sites: Sequence[str],
                        output_path: Path,
                        jitter_width: float = 0.15,
                        seed: int = 11,
                        dpi: int = 150) -> Path:
    """
    Juvenile weight by sex, one panel per trapping site.

    Box plots summarise each sex group and the individual weights are
    overlaid with horizontal jitter drawn from a seeded generator.
    """
    rng = np.random.default_rng(seed)
    present = [s for s in sites if s in set(juveniles["site"].dropna())]
    extra = sorted(set(juveniles["site"].dropna()) - set(present))
    panels = present + extra
    if not panels:
        panels = ["(no site)"]
    groups = list(SEX_ORDER) + [UNKNOWN_SEX]

    fig, axes = plt.subplots(1, len(panels), figsize=(4.5 * len(panels), 5), sharey=True, squeeze=False)
    for ax, site in zip(axes[0], panels):
        site_df = juveniles[juveniles["site"] == site]
        data = [site_df.loc[site_df["sex_label"] == g, "weight"].dropna().to_numpy(dtype=float) for g in groups]
        positions = np.arange(1, len(groups) + 1)
        non_empty = [i for i, d in enumerate(data) if d.size]
        if non_empty:
            ax.boxplot([data[i] for i in non_empty], positions=positions[non_empty],
                       widths=0.5, showfliers=False)
        for i, (g, d) in enumerate(zip(groups, data)):
            if d.size == 0:
                continue
            x = positions[i] + rng.uniform(-jitter_width, jitter_width, d.size)
            ax.scatter(x, d, s=10, alpha=0.5, color=SEX_COLORS[g])
            ax.scatter([positions[i]], [np.mean(d)], marker="D", s=30, color="black", zorder=3)
        ax.set_xticks(positions)
        ax.set_xticklabels(groups)
        ax.set_title(site, fontsize=12)
        ax.set_xlabel("Sex", fontsize=11)
    axes[0][0].set_ylabel("Weight (g)", fontsize=11)
    return _save(fig, output_path, dpi)


def plot_weight_distribution(male: np.ndarray,
                             female: np.ndarray,
                             output_path: Path,
                             bins: int = 15,
                             dpi: int = 150) -> Path:
    """Histograms and normal Q-Q plots of male and female juvenile weights."""
    fig, axes = plt.subplots(2, 2, figsize=(10, 8))
    for col, (label, values) in enumerate([("Female", female), ("Male", male)]):
        values = np.asarray(values, dtype=float)
        color = SEX_COLORS[label]

        ax = axes[0, col]
        ax.hist(values, bins=bins, color=color, alpha=0.7, edgecolor="black")
        ax.axvline(np.mean(values), color="red", linestyle="--", linewidth=1.5,
                   label=f"Mean = {np.mean(values):.1f} g")
        ax.set_xlabel("Weight (g)", fontsize=11)
        ax.set_ylabel("Count", fontsize=11)
        ax.set_title(f"{label} juveniles (n = {values.size})", fontsize=12)
        ax.legend(loc="upper right")

        ax = axes[1, col]
        (osm, osr), (slope, intercept, _) = scipy_stats.probplot(values, dist="norm")
        ax.scatter(osm, osr, s=10, color=color, alpha=0.7)
        ax.plot(osm, slope * np.asarray(osm) + intercept, "k-", linewidth=1)
        ax.set_xlabel("Theoretical quantiles", fontsize=11)
        ax.set_ylabel("Weight (g)", fontsize=11)
        ax.set_title(f"{label} normal Q-Q", fontsize=12)
    return _save(fig, output_path, dpi)


def plot_weight_hindfoot(df: pd.DataFrame,
                         fit: RegressionResult,
                         output_path: Path,
                         dpi: int = 150) -> Path:
    """Scatter of weight vs hindfoot length with the OLS line."""
    fig, ax = plt.subplots(figsize=(7, 5))
    x = df["hindft"].to_numpy(dtype=float)
    y = df["weight"].to_numpy(dtype=float)
    ax.scatter(x, y, s=12, alpha=0.6, color="slateblue")
    x_fit = np.linspace(np.nanmin(x), np.nanmax(x), 100)
    ax.plot(x_fit, fit.predict(x_fit), "r-", linewidth=2,
            label=f"slope = {fit.slope:.2f} g/mm, R$^2$ = {fit.r_squared:.2f}, r = {fit.pearson_r:.2f}")
    ax.set_xlabel("Hindfoot length (mm)", fontsize=12)
    ax.set_ylabel("Weight (g)", fontsize=12)
    ax.set_title("Juvenile weight vs hindfoot length", fontsize=13)
    ax.legend(loc="upper left")
    return _save(fig, output_path, dpi)


def generate_all_plots(counts: pd.Series,
                       juveniles: pd.DataFrame,
                       male: np.ndarray,
                       female: np.ndarray,
                       regression_rows: pd.DataFrame,
                       fit: RegressionResult,
                       output_dir: Path,
                       sites: Sequence[str],
                       cfg: Optional[PlotConfig] = None) -> Dict[str, Path]:
    """
    Render the four report figures.

    Returns a mapping from figure key to the written path.
    """
    cfg = cfg or PlotConfig()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    return {
        "annual_counts": plot_annual_counts(
            counts, output_dir / FIGURE_NAMES["annual_counts"], dpi=cfg.dpi),
        "weight_by_site": plot_weight_by_site(
            juveniles, sites, output_dir / FIGURE_NAMES["weight_by_site"],
            jitter_width=cfg.jitter_width, seed=cfg.jitter_seed, dpi=cfg.dpi),
        "weight_distribution": plot_weight_distribution(
            male, female, output_dir / FIGURE_NAMES["weight_distribution"],
            bins=cfg.histogram_bins, dpi=cfg.dpi),
        "weight_hindfoot": plot_weight_hindfoot(
            regression_rows, fit, output_dir / FIGURE_NAMES["weight_hindfoot"], dpi=cfg.dpi),
    }

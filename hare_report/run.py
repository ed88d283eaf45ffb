"""
CLI entrypoint for the juvenile snowshoe hare report.

Loads the trapping table, computes the statistics, renders the figures and
writes report.md, summary.json and the configuration snapshot.
"""

from __future__ import annotations

import argparse
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ReportConfig, load_config
from .fetch import fetch_dataset
from .guardrails import UNDEFINED_ALLOWED, assert_finite_metrics, scrub_undefined
from .io import load_hares
from .plots import generate_all_plots
from .preprocess import complete_weight_hindfoot, complete_weights_by_sex, filter_age, label_sex
from .report import build_summary, generate_report, write_summary
from .stats import (
    annual_counts,
    compare_weights,
    fit_weight_hindfoot,
    summarize_annual_counts,
    weight_summary_by_sex,
    weight_summary_by_site_sex,
)


def _study_years(df) -> List[int]:
    years = df["year"].dropna().astype(int)
    if years.empty:
        return []
    return list(range(int(years.min()), int(years.max()) + 1))


def run_report(config: ReportConfig, verbose: bool = True) -> Dict[str, Any]:
    """
    Run the full report pipeline.

    Parameters
    ----------
    config : ReportConfig
        Run configuration
    verbose : bool
        Print progress

    Returns
    -------
    dict
        The summary written to summary.json
    """
    start_time = time.time()
    output_dir = config.results_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    data_path = Path(config.data.path)
    if config.data.source_url and not data_path.exists():
        fetch_dataset(config.data.source_url, data_path, verbose=verbose)

    # Step 1: Load
    if verbose:
        print(f"Loading hare records from {data_path}...")
    hares = load_hares(data_path, date_format=config.data.date_format,
                       site_labels=config.data.site_labels)
    load_time = time.time()
    if verbose:
        print(f"  {len(hares)} records ({load_time - start_time:.2f}s)")

    # Step 2: Juveniles
    juveniles = label_sex(filter_age(hares, config.analysis.age_code))
    if juveniles.empty:
        raise ValueError(f"No records with age code {config.analysis.age_code!r} in {data_path}")
    if verbose:
        print(f"  {len(juveniles)} juvenile records")

    # Step 3: Statistics
    if verbose:
        print("Computing statistics...")
    study_years = _study_years(hares)
    counts = annual_counts(juveniles, study_years if config.analysis.fill_missing_years else None)
    annual = summarize_annual_counts(counts)
    missing_years = [y for y in study_years if counts.get(y, 0) == 0]

    sex_rows, n_excluded_sex = complete_weights_by_sex(juveniles)
    summary_by_sex = weight_summary_by_sex(sex_rows)
    site_sex = weight_summary_by_site_sex(juveniles)
    male = sex_rows.loc[sex_rows["sex_label"] == "Male", "weight"].to_numpy(dtype=float)
    female = sex_rows.loc[sex_rows["sex_label"] == "Female", "weight"].to_numpy(dtype=float)
    comparison = compare_weights(male, female)

    reg_rows, n_excluded_reg = complete_weight_hindfoot(juveniles)
    regression = fit_weight_hindfoot(reg_rows)
    stats_time = time.time()
    if verbose:
        print(f"  Statistics: {stats_time - load_time:.2f}s")

    # Step 4: Plots
    if verbose:
        print("Generating plots...")
    figures = generate_all_plots(
        counts, juveniles, male, female, reg_rows, regression,
        config.figures_dir, config.site_order(), config.plots,
    )
    plot_time = time.time()
    if verbose:
        print(f"  Plots: {plot_time - stats_time:.2f}s")

    # Step 5: Summary and report
    summary = build_summary(
        n_records=len(hares),
        n_juveniles=len(juveniles),
        counts=counts,
        annual=annual,
        summary_by_sex=summary_by_sex,
        site_sex=site_sex,
        n_excluded_sex=n_excluded_sex,
        comparison=comparison,
        n_excluded_regression=n_excluded_reg,
        regression=regression,
        figures=figures,
        output_dir=output_dir,
    )
    summary = scrub_undefined(summary, UNDEFINED_ALLOWED)
    assert_finite_metrics(summary, allow_null_keys=UNDEFINED_ALLOWED)

    write_summary(summary, output_dir / config.output.summary_name)
    config.save(output_dir / "config_used.yaml")
    generate_report(
        config, summary, counts, annual, summary_by_sex, comparison, regression,
        output_dir / config.output.report_name, missing_years=missing_years,
    )

    if verbose:
        print(f"\nTotal runtime: {time.time() - start_time:.2f}s")
        print(f"Results saved to: {output_dir}")

    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Juvenile snowshoe hare exploratory report (Bonanza Creek LTER)"
    )
    parser.add_argument("--config", type=str, default=None, help="YAML configuration file")
    parser.add_argument("--data", type=str, default=None, help="Path to the hare trapping CSV")
    parser.add_argument("--output", type=str, default=None, help="Output directory")
    parser.add_argument("--fetch-url", type=str, default=None,
                        help="Download the CSV from this URL if --data does not exist")
    parser.add_argument("--age-code", type=str, default=None, help="Age code to analyse (default: j)")
    parser.add_argument("--fill-missing-years", action="store_true",
                        help="Count study years without juveniles as zero")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)
    if args.data:
        cfg.data.path = args.data
    if args.output:
        cfg.output.results_dir = args.output
    if args.fetch_url:
        cfg.data.source_url = args.fetch_url
    if args.age_code:
        cfg.analysis.age_code = args.age_code
    if args.fill_missing_years:
        cfg.analysis.fill_missing_years = True
    run_report(cfg, verbose=not args.quiet)


if __name__ == "__main__":
    main()

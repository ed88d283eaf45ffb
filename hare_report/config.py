"""
Configuration handling for the juvenile hare report.

The configuration is expressed as nested dataclasses and persisted as YAML
next to the rendered report so every run keeps its provenance. Defaults
reproduce the published analysis; the CLI overrides individual fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


DEFAULT_SITE_LABELS: Dict[str, str] = {
    "bonrip": "Bonanza Riparian",
    "bonmat": "Bonanza Mature",
    "bonbs": "Bonanza Black Spruce",
}


@dataclass
class DataConfig:
    """Location and format of the trapping table."""

    path: str = "data/bonanza_hares.csv"
    date_format: str = "%m/%d/%y"
    source_url: Optional[str] = None
    site_labels: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SITE_LABELS))


@dataclass
class AnalysisConfig:
    """Filtering and statistical choices."""

    age_code: str = "j"
    # False: only years with at least one juvenile trap are counted
    fill_missing_years: bool = False
    alpha: float = 0.05


@dataclass
class PlotConfig:
    """Figure rendering settings."""

    dpi: int = 150
    jitter_width: float = 0.15
    jitter_seed: int = 11
    histogram_bins: int = 15


@dataclass
class OutputConfig:
    """Output locations."""

    results_dir: str = "results/hare_report"
    report_name: str = "report.md"
    summary_name: str = "summary.json"
    figures_subdir: str = "figures"


@dataclass
class ReportConfig:
    """Top-level configuration container."""

    data: DataConfig = field(default_factory=DataConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    plots: PlotConfig = field(default_factory=PlotConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    run_label: str = "default"

    @classmethod
    def from_yaml(cls, path: Path) -> "ReportConfig":
        """Load configuration from YAML."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportConfig":
        """Construct config from nested dictionaries."""
        def build(subcls, key):
            if key in data and data[key] is not None:
                return subcls(**data[key])
            return subcls()

        data_cfg = build(DataConfig, "data")
        # Partial label maps extend the defaults instead of replacing them
        labels = dict(DEFAULT_SITE_LABELS)
        labels.update(data_cfg.site_labels or {})
        data_cfg.site_labels = labels

        return cls(
            data=data_cfg,
            analysis=build(AnalysisConfig, "analysis"),
            plots=build(PlotConfig, "plots"),
            output=build(OutputConfig, "output"),
            run_label=data.get("run_label", "default"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict suitable for YAML."""
        return {
            "data": {**vars(self.data), "site_labels": dict(self.data.site_labels)},
            "analysis": vars(self.analysis).copy(),
            "plots": vars(self.plots).copy(),
            "output": vars(self.output).copy(),
            "run_label": self.run_label,
        }

    def save(self, path: Path) -> None:
        """Persist configuration to YAML."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)

    def clone(self) -> "ReportConfig":
        """Return a deep copy of the configuration."""
        return ReportConfig.from_dict(self.to_dict())

    @property
    def results_dir(self) -> Path:
        return Path(self.output.results_dir)

    @property
    def figures_dir(self) -> Path:
        return self.results_dir / self.output.figures_subdir

    def site_order(self) -> List[str]:
        """Site labels in the order they are configured."""
        return list(self.data.site_labels.values())


def load_config(path: Optional[str]) -> ReportConfig:
    """Load configuration, falling back to defaults when not provided."""
    if path is None:
        return ReportConfig()
    return ReportConfig.from_yaml(Path(path))

"""
Checks against the published Bonanza Creek juvenile hare figures.

These need the real trapping table (EDI package knb-lter-bnz.55, entity
``bonanza_hares.csv``). Put it at ``data/bonanza_hares.csv`` or point
``HARE_DATA_PATH`` at it; without it the module is skipped.
"""

import os
from pathlib import Path

import numpy as np
import pytest

from hare_report.config import ReportConfig
from hare_report.run import run_report

ROOT = Path(__file__).resolve().parents[1]
DATA_PATH = Path(os.environ.get("HARE_DATA_PATH", ROOT / "data" / "bonanza_hares.csv"))

pytestmark = pytest.mark.skipif(
    not DATA_PATH.exists(),
    reason=f"published trapping table not found at {DATA_PATH} (set HARE_DATA_PATH)",
)


@pytest.fixture(scope="module")
def published(tmp_path_factory):
    cfg = ReportConfig()
    cfg.data.path = str(DATA_PATH)
    cfg.output.results_dir = str(tmp_path_factory.mktemp("reference"))
    return run_report(cfg, verbose=False)


class TestPublishedCounts:

    def test_juvenile_total(self, published):
        assert published["n_juveniles"] == 378
        assert published["annual_summary"]["total"] == 378

    def test_peak_and_minimum(self, published):
        annual = published["annual_summary"]
        assert annual["peak_year"] == 1999
        assert annual["peak_count"] == 126
        assert annual["min_year"] == 2010
        assert annual["min_count"] == 2

    def test_mean_and_median(self, published):
        annual = published["annual_summary"]
        assert annual["n_years"] == 12
        assert np.isclose(annual["counts"]["mean"], 31.5)
        assert np.isclose(annual["counts"]["median"], 18.5)


class TestWeightsBySex:

    def test_table(self, published):
        male = published["weights_by_sex"]["Male"]
        female = published["weights_by_sex"]["Female"]
        assert male["n"] == 163
        assert female["n"] == 200
        assert np.isclose(male["mean"], 945.86, atol=0.01)
        assert np.isclose(female["mean"], 855.39, atol=0.01)
        assert np.isclose(male["sd"], 333.2, atol=0.5)
        assert np.isclose(female["sd"], 292.3, atol=0.5)

    def test_welch_and_effect_size(self, published):
        cmp_ = published["weight_comparison"]
        assert np.isclose(cmp_["difference"], 90.47, atol=0.01)
        assert np.isclose(cmp_["t_statistic"], 2.71, atol=0.01)
        assert np.isclose(cmp_["p_value"], 0.007, atol=0.001)
        assert np.isclose(cmp_["cohens_d"], 0.29, atol=0.01)


class TestWeightHindfoot:

    def test_regression(self, published):
        reg = published["regression"]
        assert np.isclose(reg["slope"], 9.52, atol=0.01)
        assert np.isclose(reg["intercept"], -279.3, atol=0.5)
        assert np.isclose(reg["r_squared"], 0.299, atol=0.001)
        assert np.isclose(reg["pearson_r"], 0.547, atol=0.001)

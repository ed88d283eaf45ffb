"""Tests for loading and preparing the hare trapping table."""

import pandas as pd
import pytest

from hare_report.io import HareDataError, load_hares, normalize_column_names, site_label
from hare_report.preprocess import (
    UNKNOWN_SEX,
    complete_weight_hindfoot,
    complete_weights_by_sex,
    filter_age,
    label_sex,
)


class TestIO:
    """Reading, normalizing and deriving columns."""

    def test_normalize_column_names(self):
        cols = [" Date", "Hind Ft.", "session_id", "L-Ear", "WEIGHT"]
        assert normalize_column_names(cols) == ["date", "hind_ft", "session_id", "l_ear", "weight"]

    def test_site_label(self):
        assert site_label("bonrip") == "Bonanza Riparian"
        assert site_label("bonmat") == "Bonanza Mature"
        assert site_label("bonbs") == "Bonanza Black Spruce"
        assert site_label("other") == "other"
        assert site_label(None) is None

    def test_load_derives_year_and_site(self, hare_csv):
        df = load_hares(hare_csv)
        assert {"year", "site"} <= set(df.columns)
        assert sorted(df["year"].dropna().unique().tolist()) == [1998, 1999, 2000, 2001, 2002, 2003]
        assert set(df["site"].dropna()) == {"Bonanza Riparian", "Bonanza Mature", "Bonanza Black Spruce"}
        assert df["date"].notna().all()

    def test_two_digit_year_parsing(self, tmp_path, hare_frame):
        frame = hare_frame.head(2).copy()
        frame["date"] = ["11/26/98", "7/4/12"]
        path = tmp_path / "two.csv"
        frame.to_csv(path, index=False)
        df = load_hares(path)
        assert df["year"].tolist() == [1998, 2012]
        assert df["date"].iloc[0] == pd.Timestamp("1998-11-26")

    def test_column_names_and_codes_normalized(self, tmp_path, hare_frame):
        frame = hare_frame.copy()
        frame.columns = [c.upper() for c in frame.columns]
        frame["AGE"] = frame["AGE"].where(frame["AGE"] != "j", " J ")
        path = tmp_path / "upper.csv"
        frame.to_csv(path, index=False)
        df = load_hares(path)
        assert (df["age"] == "j").sum() == (hare_frame["age"] == "j").sum()

    def test_missing_values_become_nan(self, hare_csv):
        df = load_hares(hare_csv)
        assert df["weight"].isna().sum() == 1
        assert df["hindft"].isna().sum() == 1
        assert df["sex"].isna().sum() == 1

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="knb-lter-bnz.55"):
            load_hares(tmp_path / "nope.csv")

    def test_missing_column_raises(self, tmp_path, hare_frame):
        path = tmp_path / "no_hindft.csv"
        hare_frame.drop(columns=["hindft"]).to_csv(path, index=False)
        with pytest.raises(HareDataError, match="hindft"):
            load_hares(path)

    def test_unparseable_dates_raise(self, tmp_path, hare_frame):
        path = tmp_path / "dates.csv"
        hare_frame.to_csv(path, index=False)
        with pytest.raises(HareDataError):
            load_hares(path, date_format="%Y-%m-%d")


class TestPreprocess:
    """Juvenile filter and complete-case selection."""

    def test_filter_age(self, hare_csv):
        df = load_hares(hare_csv)
        juveniles = filter_age(df, "j")
        assert len(juveniles) == 41
        assert (juveniles["age"] == "j").all()

    def test_label_sex(self, hare_csv):
        juveniles = label_sex(filter_age(load_hares(hare_csv)))
        assert set(juveniles["sex_label"]) == {"Female", "Male", UNKNOWN_SEX}
        assert (juveniles["sex_label"] == UNKNOWN_SEX).sum() == 1

    def test_complete_weights_by_sex_excludes_missing(self, hare_csv):
        juveniles = label_sex(filter_age(load_hares(hare_csv)))
        rows, excluded = complete_weights_by_sex(juveniles)
        assert excluded == 2
        assert len(rows) == 39
        assert rows["weight"].notna().all()
        assert set(rows["sex_label"]) == {"Female", "Male"}

    def test_complete_weight_hindfoot(self, hare_csv):
        juveniles = filter_age(load_hares(hare_csv))
        rows, excluded = complete_weight_hindfoot(juveniles)
        assert excluded == 2
        assert len(rows) == 39

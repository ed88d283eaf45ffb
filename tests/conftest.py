import numpy as np
import pandas as pd
import pytest

COLUMNS = [
    "date", "time", "grid", "trap", "l_ear", "r_ear", "sex", "age",
    "weight", "hindft", "notes", "b_key", "session_id", "study",
]

# Juvenile traps per year; 2001 has adults only
JUVENILE_PLAN = {1998: 6, 1999: 14, 2000: 9, 2002: 3, 2003: 6}
GRIDS = ["bonrip", "bonmat", "bonbs"]


def synthetic_hares(seed: int = 7) -> pd.DataFrame:
    """Trapping table shaped like the published file."""
    rng = np.random.default_rng(seed)
    rows = []

    def add(year, age, sex, weight, hindft, grid):
        month = int(rng.integers(6, 10))
        day = int(rng.integers(1, 28))
        rows.append({
            "date": f"{month}/{day}/{year % 100:02d}",
            "time": "",
            "grid": grid,
            "trap": f"{int(rng.integers(1, 50))}A",
            "l_ear": "",
            "r_ear": "",
            "sex": sex,
            "age": age,
            "weight": weight,
            "hindft": hindft,
            "notes": "",
            "b_key": int(rng.integers(1, 900)),
            "session_id": 50 + year - 1998,
            "study": "Population",
        })

    for year, n in JUVENILE_PLAN.items():
        for i in range(n):
            sex = "m" if i % 2 == 0 else "f"
            hindft = float(np.round(rng.normal(120, 12), 0))
            base = 9.5 * hindft - 280 + (60 if sex == "m" else 0)
            weight = float(np.round(base + rng.normal(0, 90), 0))
            add(year, "j", sex, weight, hindft, GRIDS[i % 3])

    # Juveniles with missing sex, weight or hindfoot
    add(1999, "j", "", 700.0, 110.0, "bonrip")
    add(2000, "j", "f", "", 118.0, "bonmat")
    add(2003, "j", "m", 905.0, "", "bonbs")

    # Adults and unknown ages, excluded by the juvenile filter
    for year in range(1998, 2004):
        for i in range(3):
            add(year, "a", "f" if i else "m", 1400.0 + 10 * i, 135.0, GRIDS[i])
    add(2001, "", "m", 1200.0, 130.0, "bonrip")

    return pd.DataFrame(rows, columns=COLUMNS)


@pytest.fixture
def hare_frame() -> pd.DataFrame:
    return synthetic_hares()


@pytest.fixture
def hare_csv(tmp_path, hare_frame):
    path = tmp_path / "bonanza_hares.csv"
    hare_frame.to_csv(path, index=False)
    return path

"""
Shared fixtures for the revenue projection test suite.
"""
import numpy as np
import pandas as pd
import pytest

SEASON = [0.9, 0.95, 1.0, 1.05, 1.1, 1.2, 1.1, 1.0, 0.95, 0.9, 0.85, 0.9]


@pytest.fixture
def trend_series():
    return [100, 102, 98, 105, 103, 107, 110, 108, 112, 115, 113, 118]


@pytest.fixture
def seasonal_values():
    """36 months of a level series scaled by a fixed multiplicative seasonal pattern."""
    return np.array([1000.0 * SEASON[t % 12] for t in range(36)])


@pytest.fixture
def trending_seasonal_values():
    return np.array([(1000.0 + 15.0 * t) * SEASON[t % 12] for t in range(36)])


def _monthly_rows(category, start_year, start_month, count, make_value):
    rows = []
    stamp = pd.Timestamp(year=start_year, month=start_month, day=1)
    for t in range(count):
        current = stamp + pd.DateOffset(months=t)
        rows.append(
            {
                "tahun": current.year,
                "bulan": current.month,
                "jenis_kendaraan_id": category,
                "total_pendapatan": make_value(t),
            }
        )
    return rows


@pytest.fixture
def revenue_frame():
    """
    Category 1 and 2: 30 months (2022-01 .. 2024-06).
    Category 3: 14 months (2023-05 .. 2024-06).
    """
    rows = []
    rows += _monthly_rows(1, 2022, 1, 30, lambda t: (1000.0 + 10.0 * t) * SEASON[t % 12])
    rows += _monthly_rows(2, 2022, 1, 30, lambda t: (500.0 + 5.0 * t) * SEASON[t % 12])
    rows += _monthly_rows(3, 2023, 5, 14, lambda t: 200.0 + t)
    return pd.DataFrame(rows)


@pytest.fixture
def revenue_repository(revenue_frame):
    from revenue_projection.data import FrameSeriesRepository

    return FrameSeriesRepository(revenue_frame)


@pytest.fixture
def revenue_csv(tmp_path, revenue_frame):
    path = tmp_path / "agregat_pendapatan.csv"
    revenue_frame.to_csv(path, index=False)
    return path

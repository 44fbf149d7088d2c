"""
Tests for time series handling and the revenue repositories.
"""
import pandas as pd
import pytest

from revenue_projection.data import (
    CsvSeriesRepository,
    FrameSeriesRepository,
    ObservationPoint,
    TimeSeries,
    load_revenue_data,
    months_between,
    shift_period,
    tail_series,
)
from revenue_projection.errors import InvalidParameterError


def test_totals_are_summed_across_categories(revenue_repository, revenue_frame):
    series = revenue_repository.monthly_totals()

    expected = revenue_frame[(revenue_frame.tahun == 2024) & (revenue_frame.bulan == 6)].total_pendapatan.sum()
    assert len(series) == 30
    assert series.first_period == (2022, 1)
    assert series.last_period == (2024, 6)
    assert series.value_at((2024, 6)) == pytest.approx(expected)


def test_category_filter(revenue_repository):
    series = revenue_repository.monthly_totals(3)

    assert len(series) == 14
    assert series.first_period == (2023, 5)
    assert series[0].value == 200.0


def test_unknown_category_gives_empty_series(revenue_repository):
    series = revenue_repository.monthly_totals(99)

    assert len(series) == 0
    assert series.last_period is None


def test_category_filter_needs_category_column():
    frame = pd.DataFrame({"tahun": [2024], "bulan": [1], "total_pendapatan": [10.0]})

    with pytest.raises(ValueError):
        FrameSeriesRepository(frame).monthly_totals(1)


def test_series_must_be_strictly_increasing():
    with pytest.raises(ValueError):
        TimeSeries([ObservationPoint(2024, 2, 1.0), ObservationPoint(2024, 1, 2.0)])
    with pytest.raises(ValueError):
        TimeSeries([ObservationPoint(2024, 1, 1.0), ObservationPoint(2024, 1, 2.0)])


def test_series_rejects_invalid_month():
    with pytest.raises(InvalidParameterError):
        TimeSeries([ObservationPoint(2024, 13, 1.0)])


def test_gaps_are_tolerated():
    series = TimeSeries([ObservationPoint(2024, 1, 1.0), ObservationPoint(2024, 4, 2.0)])

    assert list(series.values()) == [1.0, 2.0]


def test_split_before():
    series = TimeSeries.from_values([1.0, 2.0, 3.0, 4.0], start=(2023, 11))

    history, actual = series.split_before((2024, 1))
    assert len(history) == 2
    assert history.last_period == (2023, 12)
    assert actual == 3.0

    history, actual = series.split_before((2024, 6))
    assert len(history) == 4
    assert actual is None


def test_values_returns_a_copy():
    series = TimeSeries.from_values([1.0, 2.0])
    values = series.values()
    values[0] = 99.0

    assert series[0].value == 1.0


def test_period_arithmetic():
    assert months_between((2023, 11), (2024, 2)) == 3
    assert months_between((2024, 2), (2024, 2)) == 0
    assert shift_period((2023, 11), 3) == (2024, 2)
    assert shift_period((2024, 1), -1) == (2023, 12)


def test_load_revenue_data_drops_invalid_rows(tmp_path):
    path = tmp_path / "revenue.csv"
    path.write_text(
        "tahun,bulan,total_pendapatan,jenis_kendaraan_id\n"
        "2024,1,100.5,1\n"
        "2024,2,abc,1\n"
        "2024,13,50,1\n"
        "2024,3,120,1\n"
    )

    df = load_revenue_data(path)

    assert list(df["bulan"]) == [1, 3]
    assert df["total_pendapatan"].tolist() == [100.5, 120.0]


def test_load_revenue_data_requires_columns(tmp_path):
    path = tmp_path / "revenue.csv"
    path.write_text("tahun,bulan\n2024,1\n")

    with pytest.raises(ValueError):
        load_revenue_data(path)


def test_csv_repository(revenue_csv):
    repository = CsvSeriesRepository(revenue_csv)

    assert len(repository.monthly_totals()) == 30
    assert len(repository.monthly_totals(3)) == 14


def test_tail_keeps_most_recent_observations():
    series = TimeSeries.from_values([1.0, 2.0, 3.0, 4.0], start=(2023, 11))

    tail = series.tail(2)
    assert tail.first_period == (2024, 1)
    assert list(tail.values()) == [3.0, 4.0]
    assert len(series.tail(10)) == 4
    assert len(series.tail(0)) == 0
    assert list(tail_series([1.0, 2.0, 3.0], 2)) == [2.0, 3.0]

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

from .errors import InvalidParameterError

REQUIRED_COLUMNS: Sequence[str] = ("tahun", "bulan", "total_pendapatan")
CATEGORY_COLUMN = "jenis_kendaraan_id"

Period = Tuple[int, int]


@dataclass(frozen=True)
class ObservationPoint:
    year: int
    month: int
    value: float

    @property
    def period(self) -> Period:
        return (self.year, self.month)


def period_label(period: Optional[Period]) -> Optional[str]:
    if period is None:
        return None
    year, month = period
    return f"{year:04d}-{month:02d}"


def months_between(start: Period, end: Period) -> int:
    """Calendar months from ``start`` to ``end`` (positive when ``end`` is later)."""
    return (end[0] - start[0]) * 12 + (end[1] - start[1])


def shift_period(period: Period, months: int) -> Period:
    shifted = date(period[0], period[1], 1) + relativedelta(months=months)
    return (shifted.year, shifted.month)


def validate_period(year: int, month: int) -> Period:
    if not 1 <= int(month) <= 12:
        raise InvalidParameterError("month", month, "must be between 1 and 12")
    return (int(year), int(month))


class TimeSeries:
    """Immutable, strictly time-ordered sequence of monthly observations.

    Gaps between months are tolerated; models treat the points positionally.
    """

    __slots__ = ("_points",)

    def __init__(self, points: Iterable[ObservationPoint]) -> None:
        ordered = tuple(points)
        previous: Optional[Period] = None
        for point in ordered:
            validate_period(point.year, point.month)
            if previous is not None and point.period <= previous:
                raise ValueError(
                    f"Observations must be strictly increasing in (year, month); "
                    f"{period_label(point.period)} follows {period_label(previous)}."
                )
            previous = point.period
        self._points = ordered

    @classmethod
    def from_values(cls, values: Iterable[float], start: Period = (2000, 1)) -> "TimeSeries":
        points = []
        for offset, value in enumerate(values):
            year, month = shift_period(start, offset)
            points.append(ObservationPoint(year, month, float(value)))
        return cls(points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[ObservationPoint]:
        return iter(self._points)

    def __getitem__(self, index: int) -> ObservationPoint:
        return self._points[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeSeries):
            return NotImplemented
        return self._points == other._points

    def __repr__(self) -> str:
        return f"TimeSeries(count={len(self)}, first={period_label(self.first_period)}, last={period_label(self.last_period)})"

    def values(self) -> np.ndarray:
        return np.array([point.value for point in self._points], dtype=float)

    @property
    def first_period(self) -> Optional[Period]:
        return self._points[0].period if self._points else None

    @property
    def last_period(self) -> Optional[Period]:
        return self._points[-1].period if self._points else None

    def value_at(self, period: Period) -> Optional[float]:
        for point in self._points:
            if point.period == period:
                return point.value
        return None

    def split_before(self, period: Period) -> Tuple["TimeSeries", Optional[float]]:
        """History strictly before ``period`` and the observed value at ``period``, if any."""
        history = TimeSeries(point for point in self._points if point.period < period)
        return history, self.value_at(period)

    def tail(self, count: int) -> "TimeSeries":
        """The most recent ``count`` observations."""
        if count <= 0:
            return TimeSeries(())
        return TimeSeries(self._points[-count:])


SeriesLike = Union[TimeSeries, Sequence[float], np.ndarray]


def as_time_series(series: SeriesLike) -> Tuple[np.ndarray, Optional[Period], Optional[Period]]:
    """Return a private copy of the values plus the first/last calendar periods (None for plain values)."""
    if isinstance(series, TimeSeries):
        return series.values(), series.first_period, series.last_period
    values = np.array(series, dtype=float).reshape(-1)
    if not np.all(np.isfinite(values)):
        raise InvalidParameterError("series", "non-finite", "values must be finite numbers")
    return values, None, None


def tail_series(series: SeriesLike, count: int) -> SeriesLike:
    if isinstance(series, TimeSeries):
        return series.tail(count)
    values = np.array(series, dtype=float).reshape(-1)
    return values[-count:] if count > 0 else values[:0]


class SeriesRepository(ABC):
    """Source of monthly revenue totals, optionally filtered by vehicle-type category."""

    @abstractmethod
    def monthly_totals(self, category: Optional[int] = None) -> TimeSeries:
        ...


class FrameSeriesRepository(SeriesRepository):
    def __init__(self, frame: pd.DataFrame) -> None:
        missing = set(REQUIRED_COLUMNS) - set(frame.columns)
        if missing:
            raise ValueError(f"Revenue data missing required columns: {sorted(missing)}")
        self._frame = frame.copy()

    def monthly_totals(self, category: Optional[int] = None) -> TimeSeries:
        df = self._frame
        if category is not None:
            if CATEGORY_COLUMN not in df.columns:
                raise ValueError(f"Revenue data has no '{CATEGORY_COLUMN}' column to filter on.")
            df = df[df[CATEGORY_COLUMN] == category]
        if df.empty:
            return TimeSeries(())

        grouped = (
            df.groupby(["tahun", "bulan"], as_index=False)["total_pendapatan"]
            .sum()
            .sort_values(["tahun", "bulan"])
        )
        return TimeSeries(
            ObservationPoint(int(row.tahun), int(row.bulan), float(row.total_pendapatan))
            for row in grouped.itertuples(index=False)
        )


def load_revenue_data(path: Path) -> pd.DataFrame:
    df = pd.read_csv(path)
    missing = set(REQUIRED_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"Revenue data missing required columns: {sorted(missing)}")

    numeric_columns = list(REQUIRED_COLUMNS)
    if CATEGORY_COLUMN in df.columns:
        numeric_columns.append(CATEGORY_COLUMN)
    for column in numeric_columns:
        df[column] = pd.to_numeric(df[column], errors="coerce")
    df = df.dropna(subset=list(REQUIRED_COLUMNS))
    df = df[df["bulan"].between(1, 12)].copy()
    if df.empty:
        raise ValueError("No valid rows left after cleaning the revenue data. Check the source file.")

    df["tahun"] = df["tahun"].astype(int)
    df["bulan"] = df["bulan"].astype(int)
    df["total_pendapatan"] = df["total_pendapatan"].astype(float)
    return df[numeric_columns].reset_index(drop=True)


class CsvSeriesRepository(FrameSeriesRepository):
    def __init__(self, path: Path) -> None:
        super().__init__(load_revenue_data(path))
        self.path = path

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error


@dataclass(frozen=True)
class AccuracyMetrics:
    """Error of a forecast against observed actuals.

    All fields are None when no actual value is known; a missing metric
    means "pure forecast", never "zero error".
    """

    mape: Optional[float] = None
    mae: Optional[float] = None
    rmse: Optional[float] = None
    akurasi: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.mae is None

    def as_dict(self) -> Dict[str, Optional[float]]:
        return {"mape": self.mape, "mae": self.mae, "rmse": self.rmse, "akurasi": self.akurasi}


def mape(actual: Sequence[float], predicted: Sequence[float]) -> Optional[float]:
    """Mean absolute percentage error over the points whose actual is non-zero."""
    actual_arr = np.asarray(actual, dtype=float)
    predicted_arr = np.asarray(predicted, dtype=float)
    mask = actual_arr != 0
    if not np.any(mask):
        return None
    return float(np.mean(np.abs((predicted_arr[mask] - actual_arr[mask]) / actual_arr[mask])) * 100.0)


def percentage_bias(actual: Sequence[float], predicted: Sequence[float]) -> Optional[float]:
    """Signed mean of (actual - predicted) / actual, in percent; positive means under-forecasting."""
    actual_arr = np.asarray(actual, dtype=float)
    predicted_arr = np.asarray(predicted, dtype=float)
    mask = actual_arr != 0
    if not np.any(mask):
        return None
    return float(np.mean((actual_arr[mask] - predicted_arr[mask]) / actual_arr[mask]) * 100.0)


def evaluate(predicted: Sequence[float], actual: Sequence[float]) -> AccuracyMetrics:
    predicted_arr = np.atleast_1d(np.asarray(predicted, dtype=float))
    actual_arr = np.atleast_1d(np.asarray(actual, dtype=float))
    if predicted_arr.shape != actual_arr.shape:
        raise ValueError(
            f"Forecast and actual lengths differ: {predicted_arr.size} vs {actual_arr.size}."
        )
    if actual_arr.size == 0:
        return AccuracyMetrics()

    mape_value = mape(actual_arr, predicted_arr)
    # accuracy is floored at 0 so a MAPE above 100% does not read as negative accuracy
    akurasi = max(0.0, 100.0 - mape_value) if mape_value is not None else None
    return AccuracyMetrics(
        mape=mape_value,
        mae=float(mean_absolute_error(actual_arr, predicted_arr)),
        rmse=float(np.sqrt(mean_squared_error(actual_arr, predicted_arr))),
        akurasi=akurasi,
    )


@dataclass(frozen=True)
class ValidatedForecast:
    """A point forecast back-tested against the observed actual of its target period."""

    forecast: float
    actual: float
    metrics: AccuracyMetrics

    @property
    def error_absolut(self) -> float:
        return abs(self.forecast - self.actual)

    @property
    def error_persentase(self) -> Optional[float]:
        return self.metrics.mape

    def as_dict(self) -> Dict[str, Optional[float]]:
        payload: Dict[str, Optional[float]] = {"nilai_aktual": self.actual}
        payload.update(self.metrics.as_dict())
        payload["error_absolut"] = self.error_absolut
        payload["error_persentase"] = self.error_persentase
        return payload


def validate_forecast(forecast: float, actual: float) -> ValidatedForecast:
    return ValidatedForecast(
        forecast=float(forecast),
        actual=float(actual),
        metrics=evaluate([forecast], [actual]),
    )

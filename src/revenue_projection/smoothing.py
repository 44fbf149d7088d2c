"""Exponential smoothing recurrences.

Every function here reads a numpy array of observations and a set of
coefficients and returns a fresh :class:`SmoothingState`. The fitted value
at position ``t`` is the one-step-ahead forecast made with the state at
``t - 1``.

SES and Holt run through statsmodels' ``ExponentialSmoothing`` with known
initial states and fixed coefficients. Multiplicative Holt-Winters runs in
numpy: statsmodels refuses a multiplicative seasonal model on any series
with a zero observation, and a category with no revenue in some month is
ordinary input.

Initialization choices:

* SES: ``level_0 = x_0``.
* DES: ``level_0 = x_0``, ``trend_0 = x_1 - x_0`` (0 for a single point).
* TES (multiplicative Holt-Winters): with ``A1``/``A2`` the means of the
  first two seasonal cycles, ``trend = (A2 - A1) / m``, seasonal index
  ``S_i`` is the mean of ``x_i / A1`` and ``x_{m+i} / A2`` normalised to
  average 1, and the level at the end of the first cycle is
  ``A1 + trend * (m - 1) / 2``. The recurrence then runs from ``t = m``.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
from statsmodels.tsa.holtwinters import ExponentialSmoothing

from .errors import InsufficientDataError, InvalidParameterError

SES = "SES"
DES = "DES"
TES = "TES"
HYBRID = "HYBRID"

SMOOTHING_METHODS: Tuple[str, ...] = (SES, DES, TES)
ALL_METHODS: Tuple[str, ...] = (SES, DES, TES, HYBRID)

DEFAULT_SEASONAL_PERIODS = 12

# Minimum history per method, surfaced verbatim to users.
MIN_PERIODS: Dict[str, int] = {SES: 12, DES: 3}


def min_periods(method: str, seasonal_periods: int = DEFAULT_SEASONAL_PERIODS) -> int:
    if method == TES:
        return 2 * seasonal_periods
    try:
        return MIN_PERIODS[method]
    except KeyError:
        raise InvalidParameterError("method", method, f"must be one of {', '.join(SMOOTHING_METHODS)}") from None


def require_periods(method: str, available: int, seasonal_periods: int = DEFAULT_SEASONAL_PERIODS) -> None:
    required = min_periods(method, seasonal_periods)
    if available < required:
        raise InsufficientDataError(method=method, required=required, available=available)


def _check_coefficient(name: str, value: Optional[float]) -> None:
    if value is None:
        return
    if not isinstance(value, numbers.Real) or not 0.0 < float(value) < 1.0:
        raise InvalidParameterError(name, value, "must lie strictly between 0 and 1")


@dataclass(frozen=True)
class ModelParameters:
    alpha: float
    beta: Optional[float] = None
    gamma: Optional[float] = None
    seasonal_periods: Optional[int] = None

    def __post_init__(self) -> None:
        if self.alpha is None:
            raise InvalidParameterError("alpha", None, "is required for every method")
        _check_coefficient("alpha", self.alpha)
        _check_coefficient("beta", self.beta)
        _check_coefficient("gamma", self.gamma)
        validate_seasonal_periods(self.seasonal_periods)

    def as_dict(self) -> Dict[str, Optional[float]]:
        return {
            "alpha": self.alpha,
            "beta": self.beta,
            "gamma": self.gamma,
            "seasonal_periods": self.seasonal_periods,
        }


def validate_seasonal_periods(seasonal_periods: Optional[int]) -> None:
    if seasonal_periods is None:
        return
    if isinstance(seasonal_periods, bool) or not isinstance(seasonal_periods, int) or seasonal_periods < 2:
        raise InvalidParameterError("seasonal_periods", seasonal_periods, "must be an integer >= 2")


def validate_fixed(alpha=None, beta=None, gamma=None, seasonal_periods=None) -> None:
    """Reject caller-supplied coefficients before any computation starts."""
    _check_coefficient("alpha", alpha)
    _check_coefficient("beta", beta)
    _check_coefficient("gamma", gamma)
    validate_seasonal_periods(seasonal_periods)


@dataclass(frozen=True)
class SmoothingState:
    fitted: np.ndarray
    level: float
    trend: Optional[float] = None
    seasonal: Optional[np.ndarray] = None
    # first index whose fitted value is a genuine one-step forecast
    start: int = 1

    def residuals(self, values: np.ndarray) -> np.ndarray:
        return values[self.start:] - self.fitted[self.start:]


def _smoothed(model: ExponentialSmoothing, **coefficients: float):
    # a perfect fit has zero SSE, and statsmodels takes its log for the information criteria
    with np.errstate(divide="ignore", invalid="ignore"):
        return model.fit(optimized=False, **coefficients)


def simple_recursion(values: np.ndarray, alpha: float) -> SmoothingState:
    model = ExponentialSmoothing(
        values,
        trend=None,
        seasonal=None,
        initialization_method="known",
        initial_level=float(values[0]),
    )
    results = _smoothed(model, smoothing_level=alpha)
    return SmoothingState(
        fitted=np.asarray(results.fittedvalues, dtype=float),
        level=float(np.asarray(results.level)[-1]),
        start=1,
    )


def holt_recursion(values: np.ndarray, alpha: float, beta: float) -> SmoothingState:
    n = len(values)
    trend = float(values[1] - values[0]) if n > 1 else 0.0
    # seeded one step before x_0 so the state after x_0 is (x_0, x_1 - x_0)
    model = ExponentialSmoothing(
        values,
        trend="add",
        seasonal=None,
        initialization_method="known",
        initial_level=float(values[0]) - trend,
        initial_trend=trend,
    )
    results = _smoothed(model, smoothing_level=alpha, smoothing_trend=beta)
    # fitted[1] reproduces x_1 by construction of the seed
    return SmoothingState(
        fitted=np.asarray(results.fittedvalues, dtype=float),
        level=float(np.asarray(results.level)[-1]),
        trend=float(np.asarray(results.trend)[-1]),
        start=min(2, n),
    )


def _ratio(numerator: float, denominator: float, default: float) -> float:
    if denominator == 0:
        return default
    return numerator / denominator


def initial_seasonal_state(values: np.ndarray, seasonal_periods: int) -> Tuple[float, float, np.ndarray]:
    m = seasonal_periods
    first_cycle = values[:m]
    second_cycle = values[m:2 * m]
    first_mean = float(np.mean(first_cycle))
    second_mean = float(np.mean(second_cycle))
    trend = (second_mean - first_mean) / m

    seasonal = np.array(
        [
            (_ratio(first_cycle[i], first_mean, 1.0) + _ratio(second_cycle[i], second_mean, 1.0)) / 2.0
            for i in range(m)
        ],
        dtype=float,
    )
    seasonal_mean = seasonal.mean()
    if seasonal_mean > 0:
        seasonal = seasonal / seasonal_mean
    else:
        seasonal = np.ones(m, dtype=float)

    level = first_mean + trend * (m - 1) / 2.0
    return level, trend, seasonal


def holt_winters_recursion(
    values: np.ndarray,
    alpha: float,
    beta: float,
    gamma: float,
    seasonal_periods: int,
) -> SmoothingState:
    n = len(values)
    m = seasonal_periods
    level, trend, seasonal = initial_seasonal_state(values, m)
    first_mean = level - trend * (m - 1) / 2.0

    fitted = np.empty(n, dtype=float)
    for t in range(m):
        fitted[t] = (first_mean + trend * (t - (m - 1) / 2.0)) * seasonal[t]

    for t in range(m, n):
        phase = t % m
        previous_index = seasonal[phase]
        fitted[t] = (level + trend) * previous_index
        previous_level = level
        level = alpha * _ratio(values[t], previous_index, level + trend) + (1 - alpha) * (level + trend)
        trend = beta * (level - previous_level) + (1 - beta) * trend
        seasonal[phase] = gamma * _ratio(values[t], level, previous_index) + (1 - gamma) * previous_index

    return SmoothingState(
        fitted=fitted,
        level=float(level),
        trend=float(trend),
        seasonal=seasonal,
        start=m,
    )


def run_recursion(method: str, values: np.ndarray, params: ModelParameters) -> SmoothingState:
    if method == SES:
        return simple_recursion(values, params.alpha)
    if method == DES:
        return holt_recursion(values, params.alpha, params.beta)
    if method == TES:
        return holt_winters_recursion(
            values,
            params.alpha,
            params.beta,
            params.gamma,
            params.seasonal_periods or DEFAULT_SEASONAL_PERIODS,
        )
    raise InvalidParameterError("method", method, f"must be one of {', '.join(SMOOTHING_METHODS)}")


def sum_squared_errors(method: str, values: np.ndarray, params: ModelParameters) -> float:
    state = run_recursion(method, values, params)
    residuals = state.residuals(values)
    if residuals.size == 0:
        return 0.0
    return float(np.sum(residuals ** 2))

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .data import Period, SeriesLike, as_time_series
from .errors import InvalidParameterError
from .optimizer import OptimizerConfig, optimize_parameters
from .smoothing import (
    DEFAULT_SEASONAL_PERIODS,
    DES,
    SES,
    TES,
    ModelParameters,
    SmoothingState,
    require_periods,
    run_recursion,
    validate_fixed,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainingSpan:
    first_period: Optional[Period]
    last_period: Optional[Period]
    count: int


def point_forecast(
    method: str,
    level: float,
    trend: Optional[float],
    seasonal: Optional[Sequence[float]],
    count: int,
    horizon: int,
) -> float:
    if horizon < 1:
        raise InvalidParameterError("horizon", horizon, "must be at least 1")
    if method == SES:
        return level
    if method == DES:
        return level + horizon * trend
    # seasonal is indexed by phase t % m
    phase = (count - 1 + horizon) % len(seasonal)
    return (level + horizon * trend) * seasonal[phase]


@dataclass(frozen=True)
class FitResult:
    method: str
    fitted: Tuple[float, ...]
    level: float
    trend: Optional[float]
    seasonal: Optional[Tuple[float, ...]]
    forecast_next: float
    params_used: ModelParameters
    training_span: TrainingSpan
    residual_std: float
    sse: float
    # index of the first fitted value that is a genuine one-step forecast
    fit_start: int = 1

    def forecast(self, horizon: int = 1) -> float:
        """Point forecast ``horizon`` steps after the last training observation."""
        return point_forecast(self.method, self.level, self.trend, self.seasonal, self.training_span.count, horizon)

    def forecast_path(self, horizon: int) -> np.ndarray:
        return np.array([self.forecast(step) for step in range(1, horizon + 1)], dtype=float)


def _residual_std(residuals: np.ndarray) -> float:
    if residuals.size < 2:
        return 0.0
    return float(np.std(residuals, ddof=1))


def _build_result(
    method: str,
    values: np.ndarray,
    params: ModelParameters,
    first_period: Optional[Period],
    last_period: Optional[Period],
) -> FitResult:
    state: SmoothingState = run_recursion(method, values, params)
    residuals = state.residuals(values)
    seasonal = tuple(float(v) for v in state.seasonal) if state.seasonal is not None else None
    forecast_next = point_forecast(method, state.level, state.trend, seasonal, len(values), 1)
    result = FitResult(
        method=method,
        fitted=tuple(float(v) for v in state.fitted),
        level=state.level,
        trend=state.trend,
        seasonal=seasonal,
        forecast_next=float(forecast_next),
        params_used=params,
        training_span=TrainingSpan(first_period, last_period, int(len(values))),
        residual_std=_residual_std(residuals),
        sse=float(np.sum(residuals ** 2)) if residuals.size else 0.0,
        fit_start=state.start,
    )
    logger.debug("%s fit on %d points: params=%s next=%.6g", method, len(values), params.as_dict(), result.forecast_next)
    return result


def fit_ses(
    series: SeriesLike,
    alpha: Optional[float] = None,
    optimizer: Optional[OptimizerConfig] = None,
) -> FitResult:
    validate_fixed(alpha=alpha)
    values, first, last = as_time_series(series)
    require_periods(SES, len(values))
    if alpha is None:
        params = optimize_parameters(SES, values, config=optimizer).params
    else:
        params = ModelParameters(alpha=float(alpha))
    return _build_result(SES, values, params, first, last)


def fit_des(
    series: SeriesLike,
    alpha: Optional[float] = None,
    beta: Optional[float] = None,
    optimizer: Optional[OptimizerConfig] = None,
) -> FitResult:
    validate_fixed(alpha=alpha, beta=beta)
    values, first, last = as_time_series(series)
    require_periods(DES, len(values))
    if alpha is None or beta is None:
        params = optimize_parameters(DES, values, {"alpha": alpha, "beta": beta}, config=optimizer).params
    else:
        params = ModelParameters(alpha=float(alpha), beta=float(beta))
    return _build_result(DES, values, params, first, last)


def fit_tes(
    series: SeriesLike,
    alpha: Optional[float] = None,
    beta: Optional[float] = None,
    gamma: Optional[float] = None,
    seasonal_periods: int = DEFAULT_SEASONAL_PERIODS,
    optimizer: Optional[OptimizerConfig] = None,
) -> FitResult:
    validate_fixed(alpha=alpha, beta=beta, gamma=gamma, seasonal_periods=seasonal_periods)
    values, first, last = as_time_series(series)
    require_periods(TES, len(values), seasonal_periods)
    if alpha is None or beta is None or gamma is None:
        params = optimize_parameters(
            TES,
            values,
            {"alpha": alpha, "beta": beta, "gamma": gamma},
            seasonal_periods=seasonal_periods,
            config=optimizer,
        ).params
    else:
        params = ModelParameters(
            alpha=float(alpha),
            beta=float(beta),
            gamma=float(gamma),
            seasonal_periods=seasonal_periods,
        )
    return _build_result(TES, values, params, first, last)


def fit(
    method: str,
    series: SeriesLike,
    alpha: Optional[float] = None,
    beta: Optional[float] = None,
    gamma: Optional[float] = None,
    seasonal_periods: int = DEFAULT_SEASONAL_PERIODS,
    optimizer: Optional[OptimizerConfig] = None,
) -> FitResult:
    method = str(method).upper()
    if method == SES:
        return fit_ses(series, alpha=alpha, optimizer=optimizer)
    if method == DES:
        return fit_des(series, alpha=alpha, beta=beta, optimizer=optimizer)
    if method == TES:
        return fit_tes(
            series,
            alpha=alpha,
            beta=beta,
            gamma=gamma,
            seasonal_periods=seasonal_periods,
            optimizer=optimizer,
        )
    raise InvalidParameterError("method", method, "must be one of SES, DES, TES")

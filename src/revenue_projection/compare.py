from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from .data import Period, SeriesLike, as_time_series, months_between, period_label
from .errors import ForecastError, InvalidParameterError
from .hybrid import HybridConfig, HybridResult, generate_hybrid
from .metrics import AccuracyMetrics, ValidatedForecast, validate_forecast
from .models import FitResult, fit
from .optimizer import OptimizerConfig
from .smoothing import ALL_METHODS, DEFAULT_SEASONAL_PERIODS, HYBRID

logger = logging.getLogger(__name__)


@dataclass
class CompareConfig:
    seasonal_periods: int = DEFAULT_SEASONAL_PERIODS
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    hybrid: HybridConfig = field(default_factory=HybridConfig)
    max_workers: int = 1


def forecast_horizon(last_period: Optional[Period], target_period: Optional[Period]) -> int:
    """Calendar months from the last training observation to the target (1 when either is unknown)."""
    if target_period is None or last_period is None:
        return 1
    horizon = months_between(last_period, target_period)
    if horizon < 1:
        raise InvalidParameterError(
            "target_period",
            period_label(target_period),
            f"must come after the last training period {period_label(last_period)}",
        )
    return horizon


def training_fields(result: FitResult) -> Dict[str, Any]:
    params = result.params_used
    span = result.training_span
    return {
        "alpha": params.alpha,
        "beta": params.beta,
        "gamma": params.gamma,
        "seasonal_periods": params.seasonal_periods,
        "data_training_dari": period_label(span.first_period),
        "data_training_sampai": period_label(span.last_period),
        "jumlah_data_training": span.count,
    }


@dataclass(frozen=True)
class MethodOutcome:
    method: str
    forecast: Optional[float] = None
    fit: Optional[FitResult] = None
    hybrid: Optional[HybridResult] = None
    validation: Optional[ValidatedForecast] = None
    error: Optional[ForecastError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def metrics(self) -> AccuracyMetrics:
        if self.validation is None:
            return AccuracyMetrics()
        return self.validation.metrics

    def as_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            payload = self.error.to_dict()
            payload["error_kind"] = payload.pop("error")
            payload["error"] = payload.pop("message")
            return payload

        payload: Dict[str, Any] = {"nilai_prediksi": self.forecast}
        payload.update(training_fields(self.fit))
        if self.hybrid is not None:
            payload.update(self.hybrid.as_dict())
        if self.validation is not None:
            payload.update(self.validation.as_dict())
        return payload


@dataclass(frozen=True)
class ComparisonResult:
    outcomes: Dict[str, MethodOutcome]
    recommendation: Optional[str] = None
    target_period: Optional[Period] = None
    actual: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {method: outcome.as_dict() for method, outcome in self.outcomes.items()}
        if self.recommendation is not None:
            payload["recommendation"] = self.recommendation
        return payload


def run_method(method: str, series: SeriesLike, horizon: int, config: CompareConfig) -> MethodOutcome:
    try:
        if method == HYBRID:
            hybrid = generate_hybrid(
                series,
                horizon=horizon,
                seasonal_periods=config.seasonal_periods,
                config=config.hybrid,
                optimizer=config.optimizer,
            )
            return MethodOutcome(method, forecast=hybrid.nilai_prediksi, fit=hybrid.base_result, hybrid=hybrid)
        result = fit(method, series, seasonal_periods=config.seasonal_periods, optimizer=config.optimizer)
        return MethodOutcome(method, forecast=result.forecast(horizon), fit=result)
    except ForecastError as exc:
        logger.warning("%s skipped in comparison: %s", method, exc)
        return MethodOutcome(method, error=exc)


def attach_actual(outcome: MethodOutcome, actual: float) -> MethodOutcome:
    if not outcome.ok:
        return outcome
    return MethodOutcome(
        outcome.method,
        forecast=outcome.forecast,
        fit=outcome.fit,
        hybrid=outcome.hybrid,
        validation=validate_forecast(outcome.forecast, actual),
    )


def recommend(outcomes: Dict[str, MethodOutcome]) -> Optional[str]:
    """Method with the lowest MAPE among those back-tested; ties go to the earlier method."""
    best_method: Optional[str] = None
    best_mape = np.inf
    for method in ALL_METHODS:
        outcome = outcomes.get(method)
        if outcome is None or outcome.metrics.mape is None:
            continue
        if outcome.metrics.mape < best_mape:
            best_mape = outcome.metrics.mape
            best_method = method
    return best_method


def compare(
    series: SeriesLike,
    target_period: Optional[Period] = None,
    actual: Optional[float] = None,
    config: Optional[CompareConfig] = None,
) -> ComparisonResult:
    if config is None:
        config = CompareConfig()
    _, _, last_period = as_time_series(series)
    horizon = forecast_horizon(last_period, target_period)

    if config.max_workers > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
            results: List[MethodOutcome] = list(
                pool.map(lambda method: run_method(method, series, horizon, config), ALL_METHODS)
            )
    else:
        results = [run_method(method, series, horizon, config) for method in ALL_METHODS]

    outcomes = {outcome.method: outcome for outcome in results}
    recommendation: Optional[str] = None
    if actual is not None:
        outcomes = {method: attach_actual(outcome, actual) for method, outcome in outcomes.items()}
        recommendation = recommend(outcomes)
        logger.info("Compared methods against actual %.6g: recommendation=%s", actual, recommendation)
    else:
        logger.info("Compared methods without an actual value; no recommendation")

    return ComparisonResult(
        outcomes=outcomes,
        recommendation=recommendation,
        target_period=target_period,
        actual=actual,
    )

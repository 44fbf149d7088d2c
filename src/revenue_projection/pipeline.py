from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .compare import (
    CompareConfig,
    ComparisonResult,
    MethodOutcome,
    attach_actual,
    compare,
    forecast_horizon,
)
from .data import Period, SeriesRepository, period_label, validate_period
from .errors import ForecastError, InsufficientDataError, InvalidParameterError
from .hybrid import generate_hybrid
from .models import fit
from .smoothing import ALL_METHODS, DES, HYBRID, SES, TES, min_periods, validate_fixed

logger = logging.getLogger(__name__)


def suggested_method(available: int, seasonal_periods: int) -> Optional[str]:
    """Most capable method whose minimum history is met (TES, then SES, then DES)."""
    for method in (TES, SES, DES):
        if available >= min_periods(method, seasonal_periods):
            return method
    return None


def error_payload(error: ForecastError, seasonal_periods: int) -> Dict[str, Any]:
    payload = error.to_dict()
    if isinstance(error, InsufficientDataError):
        suggestion = suggested_method(error.available, seasonal_periods)
        if suggestion is not None and suggestion != error.method:
            payload["suggested_method"] = suggestion
    return payload


@dataclass(frozen=True)
class ErrorResult:
    error: ForecastError
    seasonal_periods: int

    def as_dict(self) -> Dict[str, Any]:
        return error_payload(self.error, self.seasonal_periods)


@dataclass(frozen=True)
class PredictionOutcome:
    method: str
    target_period: Period
    category: Optional[int]
    outcome: MethodOutcome
    seasonal_periods: int

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    @property
    def keterangan(self) -> str:
        label = period_label(self.target_period)
        if self.outcome.validation is not None:
            return f"Back-tested against the actual revenue recorded for {label}."
        return f"Prediction only: no actual revenue recorded for {label}."

    def as_dict(self) -> Dict[str, Any]:
        if not self.ok:
            return error_payload(self.outcome.error, self.seasonal_periods)
        payload: Dict[str, Any] = {
            "metode": self.method,
            "tahun_prediksi": self.target_period[0],
            "bulan_prediksi": self.target_period[1],
            "jenis_kendaraan_id": self.category,
        }
        payload.update(self.outcome.as_dict())
        payload["keterangan"] = self.keterangan
        return payload


def generate_prediction(
    repository: SeriesRepository,
    method: str,
    year: int,
    month: int,
    category: Optional[int] = None,
    alpha: Optional[float] = None,
    beta: Optional[float] = None,
    gamma: Optional[float] = None,
    seasonal_periods: Optional[int] = None,
    config: Optional[CompareConfig] = None,
) -> Union[PredictionOutcome, ErrorResult]:
    """Forecast one target month with one method.

    ``seasonal_periods`` defaults to ``config.seasonal_periods``. For HYBRID the
    fixed coefficients apply to its base model.
    """
    if config is None:
        config = CompareConfig()
    if seasonal_periods is None:
        seasonal_periods = config.seasonal_periods
    method = str(method).upper()
    try:
        if method not in ALL_METHODS:
            raise InvalidParameterError("metode", method, f"must be one of {', '.join(ALL_METHODS)}")
        target = validate_period(year, month)
        validate_fixed(alpha=alpha, beta=beta, gamma=gamma, seasonal_periods=seasonal_periods)
        history, actual = repository.monthly_totals(category).split_before(target)
        horizon = forecast_horizon(history.last_period, target)
    except ForecastError as exc:
        return ErrorResult(exc, seasonal_periods)

    try:
        if method == HYBRID:
            hybrid = generate_hybrid(
                history,
                horizon=horizon,
                seasonal_periods=seasonal_periods,
                config=config.hybrid,
                optimizer=config.optimizer,
                alpha=alpha,
                beta=beta,
                gamma=gamma,
            )
            outcome = MethodOutcome(method, forecast=hybrid.nilai_prediksi, fit=hybrid.base_result, hybrid=hybrid)
        else:
            result = fit(
                method,
                history,
                alpha=alpha,
                beta=beta,
                gamma=gamma,
                seasonal_periods=seasonal_periods,
                optimizer=config.optimizer,
            )
            outcome = MethodOutcome(method, forecast=result.forecast(horizon), fit=result)
    except ForecastError as exc:
        logger.warning("%s prediction for %s failed: %s", method, period_label(target), exc)
        outcome = MethodOutcome(method, error=exc)

    if actual is not None:
        outcome = attach_actual(outcome, actual)
    logger.info(
        "%s prediction for %s (category=%s): %s",
        method,
        period_label(target),
        category,
        outcome.forecast if outcome.ok else outcome.error,
    )
    return PredictionOutcome(method, target, category, outcome, seasonal_periods)


def compare_methods(
    repository: SeriesRepository,
    year: int,
    month: int,
    category: Optional[int] = None,
    config: Optional[CompareConfig] = None,
) -> Union[ComparisonResult, ErrorResult]:
    if config is None:
        config = CompareConfig()
    try:
        target = validate_period(year, month)
        validate_fixed(seasonal_periods=config.seasonal_periods)
        history, actual = repository.monthly_totals(category).split_before(target)
        return compare(history, target_period=target, actual=actual, config=config)
    except ForecastError as exc:
        return ErrorResult(exc, config.seasonal_periods)


@dataclass(frozen=True)
class DataCheckReport:
    jumlah_data: int
    data_dari: Optional[str]
    data_sampai: Optional[str]
    ses_available: bool
    des_available: bool
    tes_available: bool
    hybrid_available: bool

    @property
    def available_methods(self) -> List[str]:
        flags = {
            SES: self.ses_available,
            DES: self.des_available,
            TES: self.tes_available,
            HYBRID: self.hybrid_available,
        }
        return [method for method in ALL_METHODS if flags[method]]

    @property
    def recommendation(self) -> str:
        for method, available in ((TES, self.tes_available), (SES, self.ses_available), (DES, self.des_available)):
            if available:
                return f"{method} is recommended for {self.jumlah_data} periods of history."
        return (
            f"Not enough history: {self.jumlah_data} periods available, "
            f"at least {min_periods(DES)} are needed for any method."
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "jumlah_data": self.jumlah_data,
            "data_dari": self.data_dari,
            "data_sampai": self.data_sampai,
            "available_methods": self.available_methods,
            "ses_available": self.ses_available,
            "des_available": self.des_available,
            "tes_available": self.tes_available,
            "hybrid_available": self.hybrid_available,
            "recommendation": self.recommendation,
        }


def check_data(
    repository: SeriesRepository,
    category: Optional[int] = None,
    seasonal_periods: int = 12,
    allow_hybrid_fallback: bool = True,
) -> DataCheckReport:
    series = repository.monthly_totals(category)
    count = len(series)
    hybrid_required = min_periods(DES) if allow_hybrid_fallback else min_periods(TES, seasonal_periods)
    return DataCheckReport(
        jumlah_data=count,
        data_dari=period_label(series.first_period),
        data_sampai=period_label(series.last_period),
        ses_available=count >= min_periods(SES),
        des_available=count >= min_periods(DES),
        tes_available=count >= min_periods(TES, seasonal_periods),
        hybrid_available=count >= hybrid_required,
    )

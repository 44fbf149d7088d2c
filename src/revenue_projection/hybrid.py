"""Hybrid forecasts: a smoothing point forecast blended with business-rule scenarios.

The base forecast (TES, or SES/DES when history is too short for TES) is
scaled by fixed scenario factors. A monthly adjustment derived from the
base model's recent in-sample accuracy shifts every scenario towards the
historical forecast bias, bounded by the recent MAPE.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import numpy as np

from .data import SeriesLike, as_time_series, tail_series
from .errors import InsufficientDataError, InvalidParameterError
from .metrics import mape, percentage_bias
from .models import FitResult, fit_des, fit_ses, fit_tes
from .optimizer import OptimizerConfig
from .smoothing import DEFAULT_SEASONAL_PERIODS, DES, HYBRID, SES, TES, min_periods, validate_fixed

logger = logging.getLogger(__name__)

SCENARIOS: Tuple[str, ...] = ("conservative", "base", "moderate", "optimistic")

DEFAULT_FACTORS: Dict[str, float] = {
    "conservative": 0.95,
    "base": 1.0,
    "moderate": 1.05,
    "optimistic": 1.10,
}

SCENARIO_DESCRIPTIONS: Dict[str, str] = {
    "conservative": "Cautious outlook for budgeting against a revenue shortfall.",
    "base": "Smoothing forecast taken as is.",
    "moderate": "Modest growth above the smoothing forecast.",
    "optimistic": "Strong growth outlook for upside planning.",
}


@dataclass
class HybridConfig:
    factors: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_FACTORS))
    adjustment_weight: float = 0.5
    max_adjustment: float = 0.05
    z_score: float = 1.96
    confidence_interval: int = 95
    monthly_window: int = 6
    allow_base_fallback: bool = True
    selected_scenario: str = "base"
    # fit the base model on the most recent N periods only; None uses all history
    training_periods: Optional[int] = None


@dataclass(frozen=True)
class ScenarioResult:
    prediksi: float
    factor: float
    monthly_adjustment: float
    final_factor: float
    description: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "prediksi": self.prediksi,
            "factor": self.factor,
            "monthly_adjustment": self.monthly_adjustment,
            "final_factor": self.final_factor,
            "description": self.description,
        }


@dataclass(frozen=True)
class HybridScenarioSet:
    scenarios: Dict[str, ScenarioResult]
    recommended_scenario: str
    confidence_lower: float
    confidence_upper: float
    confidence_interval: int
    base_forecast: float
    monthly_mape: Optional[float]
    monthly_adjustment: float
    used_fallback: bool


def monthly_adjustment(
    recent_mape: Optional[float],
    recent_bias: Optional[float],
    config: HybridConfig,
) -> float:
    """Shift applied to every scenario factor; 0 unless both recent MAPE and bias are known."""
    if recent_mape is None or recent_bias is None:
        return 0.0
    cap = min(abs(recent_mape) / 100.0, config.max_adjustment)
    raw = recent_bias / 100.0 * config.adjustment_weight
    return float(np.clip(raw, -cap, cap))


def hybridize(
    tes_result: FitResult,
    recent_mape: Optional[float] = None,
    recent_bias: Optional[float] = None,
    horizon: int = 1,
    config: Optional[HybridConfig] = None,
) -> HybridScenarioSet:
    if config is None:
        config = HybridConfig()
    missing = [name for name in SCENARIOS if name not in config.factors]
    if missing:
        raise InvalidParameterError("factors", sorted(config.factors), f"missing scenarios {missing}")

    base_forecast = tes_result.forecast(horizon)
    adjustment = monthly_adjustment(recent_mape, recent_bias, config)

    scenarios: Dict[str, ScenarioResult] = {}
    for name in SCENARIOS:
        factor = float(config.factors[name])
        final_factor = factor + adjustment
        scenarios[name] = ScenarioResult(
            prediksi=base_forecast * final_factor,
            factor=factor,
            monthly_adjustment=adjustment,
            final_factor=final_factor,
            description=SCENARIO_DESCRIPTIONS[name],
        )

    centre = scenarios["base"].prediksi
    spread = config.z_score * tes_result.residual_std
    return HybridScenarioSet(
        scenarios=scenarios,
        recommended_scenario="base",
        confidence_lower=max(0.0, centre - spread),
        confidence_upper=centre + spread,
        confidence_interval=config.confidence_interval,
        base_forecast=base_forecast,
        monthly_mape=recent_mape,
        monthly_adjustment=adjustment,
        used_fallback=recent_mape is None or recent_bias is None,
    )


def recent_accuracy(
    result: FitResult,
    values: np.ndarray,
    window: int,
) -> Tuple[Optional[float], Optional[float]]:
    """MAPE and signed bias of the last ``window`` one-step in-sample fits."""
    fitted = np.asarray(result.fitted, dtype=float)
    start = max(result.fit_start, len(values) - window)
    if window < 1 or start >= len(values):
        return None, None
    actual = values[start:]
    predicted = fitted[start:]
    return mape(actual, predicted), percentage_bias(actual, predicted)


@dataclass(frozen=True)
class HybridResult:
    base_method: str
    base_result: FitResult
    scenario_set: HybridScenarioSet
    scenario: str
    horizon: int

    @property
    def nilai_prediksi(self) -> float:
        return self.scenario_set.scenarios[self.scenario].prediksi

    @property
    def training_periods(self) -> int:
        return self.base_result.training_span.count

    def as_dict(self) -> Dict[str, Any]:
        params = self.base_result.params_used
        scenario_set = self.scenario_set
        return {
            "nilai_prediksi": self.nilai_prediksi,
            "base_method": self.base_method,
            "scenario": self.scenario,
            "scenarios": {name: item.as_dict() for name, item in scenario_set.scenarios.items()},
            "recommended_scenario": scenario_set.recommended_scenario,
            "monthly_mape": scenario_set.monthly_mape,
            "monthly_adjustment": scenario_set.monthly_adjustment,
            "tes_prediction": scenario_set.base_forecast,
            "tes_parameters": {"alpha": params.alpha, "beta": params.beta, "gamma": params.gamma},
            "confidence_lower": scenario_set.confidence_lower,
            "confidence_upper": scenario_set.confidence_upper,
            "confidence_interval": scenario_set.confidence_interval,
            "training_periods": self.training_periods,
            "used_fallback": scenario_set.used_fallback,
        }


def _fit_base(
    series: SeriesLike,
    available: int,
    seasonal_periods: int,
    config: HybridConfig,
    optimizer: Optional[OptimizerConfig],
    alpha: Optional[float] = None,
    beta: Optional[float] = None,
    gamma: Optional[float] = None,
) -> FitResult:
    tes_required = min_periods(TES, seasonal_periods)
    if available >= tes_required:
        return fit_tes(
            series,
            alpha=alpha,
            beta=beta,
            gamma=gamma,
            seasonal_periods=seasonal_periods,
            optimizer=optimizer,
        )
    if not config.allow_base_fallback:
        raise InsufficientDataError(method=HYBRID, required=tes_required, available=available)

    for method in (SES, DES):
        if available >= min_periods(method):
            logger.warning(
                "Hybrid base: TES needs %d periods, %d available; using %s instead",
                tes_required,
                available,
                method,
            )
            if method == SES:
                return fit_ses(series, alpha=alpha, optimizer=optimizer)
            return fit_des(series, alpha=alpha, beta=beta, optimizer=optimizer)
    raise InsufficientDataError(method=HYBRID, required=min_periods(DES), available=available)


def _check_training_periods(training_periods: Optional[int]) -> None:
    if training_periods is None:
        return
    if isinstance(training_periods, bool) or not isinstance(training_periods, int) or training_periods < 1:
        raise InvalidParameterError("training_periods", training_periods, "must be a positive integer")


def generate_hybrid(
    series: SeriesLike,
    horizon: int = 1,
    seasonal_periods: int = DEFAULT_SEASONAL_PERIODS,
    config: Optional[HybridConfig] = None,
    optimizer: Optional[OptimizerConfig] = None,
    alpha: Optional[float] = None,
    beta: Optional[float] = None,
    gamma: Optional[float] = None,
) -> HybridResult:
    """Scenario forecast on a TES base, or SES/DES when the history is too short.

    Coefficients supplied by the caller are fixed on the base model; those the
    base model does not use (gamma for SES/DES, beta for SES) are ignored.
    """
    if config is None:
        config = HybridConfig()
    if config.selected_scenario not in SCENARIOS:
        raise InvalidParameterError("selected_scenario", config.selected_scenario, f"must be one of {', '.join(SCENARIOS)}")
    _check_training_periods(config.training_periods)
    validate_fixed(alpha=alpha, beta=beta, gamma=gamma, seasonal_periods=seasonal_periods)

    if config.training_periods is not None:
        series = tail_series(series, config.training_periods)
    values, _, _ = as_time_series(series)
    base = _fit_base(series, len(values), seasonal_periods, config, optimizer, alpha, beta, gamma)
    recent_mape, recent_bias = recent_accuracy(base, values, config.monthly_window)
    scenario_set = hybridize(base, recent_mape, recent_bias, horizon=horizon, config=config)
    logger.info(
        "Hybrid forecast on %s base over %d periods: %.6g (adjustment %.4f)",
        base.method,
        len(values),
        scenario_set.scenarios[config.selected_scenario].prediksi,
        scenario_set.monthly_adjustment,
    )
    return HybridResult(
        base_method=base.method,
        base_result=base,
        scenario_set=scenario_set,
        scenario=config.selected_scenario,
        horizon=horizon,
    )

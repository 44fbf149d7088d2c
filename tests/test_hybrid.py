"""
Tests for the hybrid scenario generator.
"""
import numpy as np
import pytest

from revenue_projection.errors import InsufficientDataError, InvalidParameterError
from revenue_projection.hybrid import (
    DEFAULT_FACTORS,
    SCENARIOS,
    HybridConfig,
    generate_hybrid,
    hybridize,
    monthly_adjustment,
)
from revenue_projection.data import TimeSeries
from revenue_projection.models import fit_tes
from revenue_projection.smoothing import DES, HYBRID, SES, TES


@pytest.fixture
def tes_result(trending_seasonal_values):
    noisy = trending_seasonal_values + 7.0 * np.sin(np.arange(len(trending_seasonal_values)))
    return fit_tes(noisy, alpha=0.4, beta=0.1, gamma=0.3)


def test_base_scenario_equals_tes_forecast_without_recent_mape(tes_result):
    scenario_set = hybridize(tes_result)
    base = scenario_set.scenarios["base"]

    assert base.prediksi == tes_result.forecast_next
    assert base.factor == 1.0
    assert base.monthly_adjustment == 0.0
    assert base.final_factor == 1.0
    assert scenario_set.used_fallback is True
    assert scenario_set.recommended_scenario == "base"


def test_scenario_constants(tes_result):
    scenario_set = hybridize(tes_result)

    assert DEFAULT_FACTORS == {"conservative": 0.95, "base": 1.0, "moderate": 1.05, "optimistic": 1.10}
    assert list(scenario_set.scenarios) == list(SCENARIOS)
    for name, factor in DEFAULT_FACTORS.items():
        scenario = scenario_set.scenarios[name]
        assert scenario.factor == factor
        assert scenario.prediksi == pytest.approx(tes_result.forecast_next * factor)
        assert scenario.description


def test_confidence_band_uses_residual_std(tes_result):
    scenario_set = hybridize(tes_result)
    centre = tes_result.forecast_next
    spread = 1.96 * tes_result.residual_std

    assert scenario_set.confidence_upper == pytest.approx(centre + spread)
    assert scenario_set.confidence_lower == pytest.approx(max(0.0, centre - spread))
    assert scenario_set.confidence_interval == 95


def test_confidence_lower_bound_is_not_negative(tes_result):
    scenario_set = hybridize(tes_result, config=HybridConfig(z_score=1e9))

    assert scenario_set.confidence_lower == 0.0


@pytest.mark.parametrize(
    "recent_mape, recent_bias, expected",
    [
        (None, 10.0, 0.0),
        (4.0, 10.0, 0.04),
        (4.0, -2.0, -0.01),
        (20.0, 30.0, 0.05),
        (20.0, -30.0, -0.05),
        (4.0, None, 0.0),
    ],
)
def test_monthly_adjustment_is_bounded_by_recent_mape(recent_mape, recent_bias, expected):
    assert monthly_adjustment(recent_mape, recent_bias, HybridConfig()) == pytest.approx(expected)


def test_adjustment_shifts_every_scenario(tes_result):
    scenario_set = hybridize(tes_result, recent_mape=4.0, recent_bias=10.0)

    assert scenario_set.used_fallback is False
    assert scenario_set.monthly_mape == 4.0
    for name, factor in DEFAULT_FACTORS.items():
        scenario = scenario_set.scenarios[name]
        assert scenario.monthly_adjustment == pytest.approx(0.04)
        assert scenario.final_factor == pytest.approx(factor + 0.04)
        assert scenario.prediksi == pytest.approx(tes_result.forecast_next * (factor + 0.04))


def test_hybridize_is_deterministic(tes_result):
    assert hybridize(tes_result, 3.0, 1.0) == hybridize(tes_result, 3.0, 1.0)


def test_generate_hybrid_uses_tes_with_enough_history(seasonal_values):
    result = generate_hybrid(seasonal_values)

    assert result.base_method == TES
    assert result.scenario == "base"
    assert result.scenario_set.monthly_mape == pytest.approx(0.0, abs=1e-6)
    assert result.nilai_prediksi == pytest.approx(seasonal_values[0])


@pytest.mark.parametrize("count, base_method", [(15, SES), (5, DES)])
def test_generate_hybrid_falls_back_to_shorter_methods(count, base_method):
    values = [100.0 + 3.0 * i for i in range(count)]

    result = generate_hybrid(values)

    assert result.base_method == base_method
    assert result.as_dict()["base_method"] == base_method


def test_generate_hybrid_without_fallback_requires_tes_history():
    values = [100.0 + i for i in range(15)]

    with pytest.raises(InsufficientDataError) as excinfo:
        generate_hybrid(values, config=HybridConfig(allow_base_fallback=False))

    assert excinfo.value.method == HYBRID
    assert excinfo.value.required == 24
    assert excinfo.value.available == 15


def test_generate_hybrid_below_des_minimum():
    with pytest.raises(InsufficientDataError) as excinfo:
        generate_hybrid([100.0, 110.0])

    assert excinfo.value.required == 3
    assert excinfo.value.available == 2


def test_selected_scenario_becomes_the_prediction(seasonal_values):
    result = generate_hybrid(seasonal_values, config=HybridConfig(selected_scenario="optimistic"))

    assert result.nilai_prediksi == result.scenario_set.scenarios["optimistic"].prediksi
    payload = result.as_dict()
    assert payload["scenario"] == "optimistic"
    assert payload["recommended_scenario"] == "base"
    assert set(payload["scenarios"]) == set(SCENARIOS)


def test_unknown_scenario_is_rejected(seasonal_values):
    with pytest.raises(InvalidParameterError):
        generate_hybrid(seasonal_values, config=HybridConfig(selected_scenario="aggressive"))


def test_recent_mape_without_bias_falls_back(tes_result):
    scenario_set = hybridize(tes_result, recent_mape=4.0)

    assert scenario_set.monthly_adjustment == 0.0
    assert scenario_set.used_fallback is True
    assert scenario_set.scenarios["base"].prediksi == tes_result.forecast_next


def test_training_periods_limits_base_history(trending_seasonal_values):
    series = TimeSeries.from_values(trending_seasonal_values, start=(2021, 1))

    result = generate_hybrid(series, config=HybridConfig(training_periods=24))

    assert result.base_method == TES
    assert result.training_periods == 24
    assert result.base_result.training_span.first_period == (2022, 1)
    assert result.base_result.training_span.last_period == (2023, 12)
    assert result.as_dict()["training_periods"] == 24


def test_short_training_window_uses_fallback_base(trending_seasonal_values):
    result = generate_hybrid(trending_seasonal_values, config=HybridConfig(training_periods=12))

    assert result.base_method == SES
    assert result.training_periods == 12


def test_training_window_longer_than_history_uses_everything(trending_seasonal_values):
    result = generate_hybrid(trending_seasonal_values, config=HybridConfig(training_periods=100))

    assert result.training_periods == 36


def test_training_window_below_des_minimum(trending_seasonal_values):
    with pytest.raises(InsufficientDataError) as excinfo:
        generate_hybrid(trending_seasonal_values, config=HybridConfig(training_periods=2))

    assert excinfo.value.method == HYBRID
    assert excinfo.value.required == 3
    assert excinfo.value.available == 2


@pytest.mark.parametrize("training_periods", [0, -3, 2.5, True])
def test_invalid_training_periods_are_rejected(trending_seasonal_values, training_periods):
    with pytest.raises(InvalidParameterError):
        generate_hybrid(trending_seasonal_values, config=HybridConfig(training_periods=training_periods))


def test_fixed_coefficients_reach_the_base_model(trending_seasonal_values):
    result = generate_hybrid(trending_seasonal_values, alpha=0.4, beta=0.1, gamma=0.3)

    params = result.base_result.params_used
    assert (params.alpha, params.beta, params.gamma) == (0.4, 0.1, 0.3)
    assert result.as_dict()["tes_parameters"] == {"alpha": 0.4, "beta": 0.1, "gamma": 0.3}


def test_invalid_fixed_coefficient_is_rejected(trending_seasonal_values):
    with pytest.raises(InvalidParameterError):
        generate_hybrid(trending_seasonal_values, gamma=1.2)

"""Monthly revenue forecasting with exponential smoothing, method comparison, and hybrid scenarios."""

from .compare import CompareConfig, ComparisonResult, MethodOutcome, compare
from .data import (
    CsvSeriesRepository,
    FrameSeriesRepository,
    ObservationPoint,
    SeriesRepository,
    TimeSeries,
    load_revenue_data,
)
from .errors import ForecastError, InsufficientDataError, InvalidParameterError
from .hybrid import HybridConfig, HybridResult, HybridScenarioSet, ScenarioResult, generate_hybrid, hybridize
from .metrics import AccuracyMetrics, ValidatedForecast, evaluate, validate_forecast
from .models import FitResult, TrainingSpan, fit, fit_des, fit_ses, fit_tes
from .optimizer import OptimizationResult, OptimizerConfig, optimize, optimize_parameters
from .pipeline import DataCheckReport, PredictionOutcome, check_data, compare_methods, generate_prediction
from .smoothing import DES, HYBRID, MIN_PERIODS, SES, TES, ModelParameters, min_periods

__all__ = [
    "AccuracyMetrics",
    "CompareConfig",
    "ComparisonResult",
    "CsvSeriesRepository",
    "DES",
    "DataCheckReport",
    "FitResult",
    "ForecastError",
    "FrameSeriesRepository",
    "HYBRID",
    "HybridConfig",
    "HybridResult",
    "HybridScenarioSet",
    "InsufficientDataError",
    "InvalidParameterError",
    "MIN_PERIODS",
    "MethodOutcome",
    "ModelParameters",
    "ObservationPoint",
    "OptimizationResult",
    "OptimizerConfig",
    "PredictionOutcome",
    "SES",
    "ScenarioResult",
    "SeriesRepository",
    "TES",
    "TimeSeries",
    "TrainingSpan",
    "ValidatedForecast",
    "check_data",
    "compare",
    "compare_methods",
    "evaluate",
    "fit",
    "fit_des",
    "fit_ses",
    "fit_tes",
    "generate_hybrid",
    "generate_prediction",
    "hybridize",
    "load_revenue_data",
    "min_periods",
    "optimize",
    "optimize_parameters",
    "validate_forecast",
]

__version__ = "0.1.0"

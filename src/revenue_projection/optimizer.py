from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import minimize

from .errors import InvalidParameterError
from .smoothing import (
    DEFAULT_SEASONAL_PERIODS,
    DES,
    SES,
    TES,
    ModelParameters,
    sum_squared_errors,
    validate_fixed,
)

logger = logging.getLogger(__name__)

FREE_COEFFICIENTS: Dict[str, Tuple[str, ...]] = {
    SES: ("alpha",),
    DES: ("alpha", "beta"),
    TES: ("alpha", "beta", "gamma"),
}

_PENALTY = 1e300


@dataclass
class OptimizerConfig:
    grid: Sequence[float] = field(default_factory=lambda: tuple(round(0.1 * i, 1) for i in range(1, 10)))
    lower: float = 0.01
    upper: float = 0.99
    max_iterations: int = 200
    xatol: float = 1e-4
    fatol: float = 1e-8


@dataclass(frozen=True)
class OptimizationResult:
    params: ModelParameters
    sse: float
    converged: bool
    evaluations: int


def _build_params(
    method: str,
    names: Sequence[str],
    point: Sequence[float],
    fixed: Dict[str, Optional[float]],
    seasonal_periods: Optional[int],
) -> ModelParameters:
    coefficients = {name: fixed.get(name) for name in FREE_COEFFICIENTS[method]}
    coefficients.update({name: float(value) for name, value in zip(names, point)})
    return ModelParameters(
        alpha=coefficients["alpha"],
        beta=coefficients.get("beta"),
        gamma=coefficients.get("gamma"),
        seasonal_periods=seasonal_periods if method == TES else None,
    )


def optimize_parameters(
    method: str,
    values: np.ndarray,
    fixed: Optional[Dict[str, Optional[float]]] = None,
    seasonal_periods: Optional[int] = None,
    config: Optional[OptimizerConfig] = None,
) -> OptimizationResult:
    """Minimise in-sample one-step SSE over the coefficients not fixed by the caller.

    A coarse grid picks the starting point, then a bounded Nelder-Mead search
    refines it. Both stages are deterministic, so the same series and fixed
    coefficients always yield the same parameters.
    """
    if method not in FREE_COEFFICIENTS:
        raise InvalidParameterError("method", method, "must be one of SES, DES, TES")
    if config is None:
        config = OptimizerConfig()
    fixed = {name: value for name, value in (fixed or {}).items() if value is not None}
    validate_fixed(**fixed)
    if method == TES and seasonal_periods is None:
        seasonal_periods = DEFAULT_SEASONAL_PERIODS

    values = np.array(values, dtype=float)
    free = [name for name in FREE_COEFFICIENTS[method] if name not in fixed]
    evaluations = 0

    def objective(point: Sequence[float]) -> float:
        nonlocal evaluations
        evaluations += 1
        clipped = np.clip(point, config.lower, config.upper)
        params = _build_params(method, free, clipped, fixed, seasonal_periods)
        sse = sum_squared_errors(method, values, params)
        return sse if np.isfinite(sse) else _PENALTY

    if not free:
        params = _build_params(method, free, (), fixed, seasonal_periods)
        return OptimizationResult(params=params, sse=objective(()), converged=True, evaluations=evaluations)

    grid = [value for value in config.grid if config.lower <= value <= config.upper]
    best_point: List[float] = [grid[len(grid) // 2]] * len(free)
    best_sse = np.inf
    for candidate in itertools.product(grid, repeat=len(free)):
        sse = objective(candidate)
        if sse < best_sse:
            best_sse = sse
            best_point = list(candidate)

    converged = True
    try:
        refined = minimize(
            objective,
            np.array(best_point, dtype=float),
            method="Nelder-Mead",
            bounds=[(config.lower, config.upper)] * len(free),
            options={
                "maxiter": config.max_iterations,
                "xatol": config.xatol,
                "fatol": config.fatol,
            },
        )
        converged = bool(refined.success)
        if np.isfinite(refined.fun) and refined.fun < best_sse:
            best_sse = float(refined.fun)
            best_point = list(np.clip(refined.x, config.lower, config.upper))
    except (ValueError, FloatingPointError) as exc:
        converged = False
        logger.warning("%s refinement failed (%s); keeping grid optimum", method, exc)

    if not converged:
        logger.warning(
            "%s parameter search did not converge within %d iterations; using best point found",
            method,
            config.max_iterations,
        )

    params = _build_params(method, free, best_point, fixed, seasonal_periods)
    logger.debug("%s optimized %s -> %s (sse=%.6g)", method, free, params.as_dict(), best_sse)
    return OptimizationResult(params=params, sse=float(best_sse), converged=converged, evaluations=evaluations)


def optimize(
    method: str,
    values: np.ndarray,
    fixed: Optional[Dict[str, Optional[float]]] = None,
    seasonal_periods: Optional[int] = None,
    config: Optional[OptimizerConfig] = None,
) -> ModelParameters:
    return optimize_parameters(method, values, fixed, seasonal_periods, config).params

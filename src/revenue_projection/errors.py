from __future__ import annotations

from typing import Any, Dict


class ForecastError(Exception):
    """Base class for errors raised by the forecasting core."""

    kind = "forecast_error"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": str(self)}


class InsufficientDataError(ForecastError):
    kind = "insufficient_data"

    def __init__(self, method: str, required: int, available: int) -> None:
        self.method = method
        self.required = required
        self.available = available
        super().__init__(
            f"{method} requires at least {required} periods of history, "
            f"but only {available} are available."
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update(
            {
                "method": self.method,
                "required": self.required,
                "available": self.available,
            }
        )
        return payload


class InvalidParameterError(ForecastError):
    kind = "invalid_parameter"

    def __init__(self, name: str, value: Any, reason: str) -> None:
        self.name = name
        self.value = value
        super().__init__(f"Invalid {name}={value!r}: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update({"parameter": self.name, "value": self.value})
        return payload

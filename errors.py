"""
Error hierarchy for the score estimator.

Everything raised on purpose by this project derives from ScoreEstimatorError,
so callers can catch the whole family in one place:

    try:
        await estimator.estimate_score()
    except RemoteServiceError as e:
        logger.warning(f"remote scoring failed: {e.message}")
"""

from typing import Any, Dict, Optional

__all__ = [
    "ConfigurationError",
    "MalformedInputError",
    "RemoteServiceError",
    "ScoreEstimatorError",
]


class ScoreEstimatorError(Exception):
    """Base exception.

    Attributes:
        code: Machine-readable error code
        message: Human-readable description
        context: Extra fields for debugging
    """
    code: str = "SCORE_ESTIMATOR_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(ScoreEstimatorError):
    """Remote scoring requested while no remote scorer is configured."""
    code: str = "CONFIGURATION_ERROR"


class RemoteServiceError(ScoreEstimatorError):
    """The remote scoring service failed or answered with something unusable.

    Attributes:
        status: HTTP status code when the service answered, else None
    """
    code: str = "REMOTE_SERVICE_ERROR"

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context=context)
        self.status = status
        if status is not None:
            self.context["status"] = status


class MalformedInputError(ScoreEstimatorError):
    """Board contents disagree with the dimensions the engine reports."""
    code: str = "MALFORMED_INPUT"

from __future__ import annotations


class InputError(ValueError):
    """Raised when the inbound request is missing or carries an unusable image."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class OracleError(RuntimeError):
    """Raised when the reasoning oracle is unreachable or returns an unusable reply."""


class OracleQuotaExceededError(OracleError):
    """Raised when OpenAI returns quota/rate-limit exhaustion."""


class SchemaError(ValueError):
    """Raised when oracle output is not the JSON document we asked for."""


class AggregationError(RuntimeError):
    """Raised inside a single key-piece aggregation; never leaves the aggregator."""


class AnalysisError(RuntimeError):
    """Raised by the assembler when the style analysis stage fails.

    `reason` is "schema" when the oracle answered with an invalid document and
    "oracle" when the call itself failed. "input" means the image bytes could
    not be decoded before anything was sent.
    """

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason

    @property
    def public_message(self) -> str:
        if self.reason == "schema":
            return "Failed to parse analysis"
        return "Failed to analyze style"

from dataclasses import dataclass
from typing import Any, Optional

from pymongo.errors import PyMongoError

SERVER_LOG_HINT = "Check server logs for more information"


class ProxyError(Exception):
    """Base class for errors raised by the proxy itself."""


class ConfigurationError(ProxyError):
    """Required configuration is missing or malformed. Fatal at startup."""


class DatabaseConnectionError(ProxyError, ConnectionError):
    """The connection to MongoDB could not be established."""

    def __init__(self, message: str, code: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


def error_code(exc: BaseException) -> Any:
    """Driver-supplied error code, if the exception carries one."""
    if isinstance(exc, DatabaseConnectionError):
        return exc.code
    if isinstance(exc, PyMongoError):
        return getattr(exc, "code", None)
    return None


@dataclass
class OperationError:
    message: str
    code: Any = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "OperationError":
        return cls(message=str(exc) or exc.__class__.__name__, code=error_code(exc))

    def to_dict(self, verbose: bool = True) -> dict:
        if not verbose:
            return {"error": self.message}
        body = {"error": self.message}
        if self.code is not None:
            body["code"] = self.code
        body["details"] = SERVER_LOG_HINT
        return body


@dataclass
class OperationResult:
    """Outcome of one driver call: either a value or an error, never both."""

    success: bool
    value: Any = None
    error: Optional[OperationError] = None

    @classmethod
    def ok(cls, value: Any) -> "OperationResult":
        return cls(success=True, value=value)

    @classmethod
    def failed(cls, exc: BaseException) -> "OperationResult":
        return cls(success=False, error=OperationError.from_exception(exc))

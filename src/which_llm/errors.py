"""
Error taxonomy
==============

Every condition the command line reports to the user derives from
:class:`WhichLlmError`. Anything else escaping a command is a bug.
"""

__all__ = [
    "WhichLlmError",
    "ConfigError",
    "NotFoundError",
    "AuthenticationError",
    "RateLimitError",
    "ServerError",
    "ApiError",
    "ResponseFormatError",
    "CacheError",
    "StoreWriteError",
    "QueryError",
    "QuerySyntaxError",
    "UnresolvedIdentifierError",
    "TableNotFoundError",
    "QueryExecutionError",
]


class WhichLlmError(Exception):
    """Base exception for reported failures."""


class ConfigError(WhichLlmError):
    """Raised for a bad user-supplied value (token count, period, profile)."""


class NotFoundError(WhichLlmError):
    """Raised when a name search matches no model."""


class AuthenticationError(WhichLlmError):
    """Raised when the credential is missing or rejected."""


class RateLimitError(WhichLlmError):
    def __init__(self, retry_after=None):
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"Rate limited. Try again in {retry_after} seconds."
        else:
            message = "Rate limited. Try again later."
        super().__init__(message)


class ServerError(WhichLlmError):
    def __init__(self, status, message=None):
        self.status = int(status)
        super().__init__(message or f"Server error (HTTP {self.status}). Try again later.")


class ApiError(WhichLlmError):
    """Raised for any other non-2xx response or transport failure."""

    def __init__(self, status, body=""):
        self.status = int(status)
        self.body = str(body or "")
        if self.status:
            message = f"API error (HTTP {self.status}): {self.body}"
        else:
            message = f"API request failed: {self.body}"
        super().__init__(message)


class ResponseFormatError(ApiError):
    """Raised when an upstream payload cannot be decoded into records."""

    def __init__(self, body):
        self.status = 0
        self.body = str(body or "")
        WhichLlmError.__init__(self, f"Unexpected response format: {self.body}")


class CacheError(WhichLlmError):
    """Raised for cache directory resolution or I/O failures."""


class StoreWriteError(CacheError):
    """Raised when a columnar table file cannot be written."""


class QueryError(WhichLlmError):
    """Base exception for SQL query failures."""


class QuerySyntaxError(QueryError):
    def __init__(self, detail):
        self.detail = str(detail)
        super().__init__(f"SQL syntax error: {self.detail}")


class UnresolvedIdentifierError(QueryError):
    def __init__(self, detail):
        self.detail = str(detail)
        super().__init__(
            "Table or column not found. Use 'which-llm query --tables' to see available "
            f"tables and columns.\nError: {self.detail}"
        )


class TableNotFoundError(UnresolvedIdentifierError):
    def __init__(self, table, command):
        self.table = str(table)
        self.command = str(command)
        self.detail = f"Table '{self.table}' not found"
        QueryError.__init__(
            self,
            f"Table '{self.table}' not found. Run '{self.command}' first to fetch and cache the data.",
        )


class QueryExecutionError(QueryError):
    def __init__(self, detail):
        self.detail = str(detail)
        super().__init__(f"SQL error: {self.detail}")

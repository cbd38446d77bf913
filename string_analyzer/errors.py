class StringAnalyzerError(Exception):
    """Base error carrying the HTTP status it should be rendered with."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(StringAnalyzerError):
    """Malformed, missing or wrong-typed input. 400 unless told otherwise (422)."""

    status_code = 400


class NotFoundError(StringAnalyzerError):
    status_code = 404


class ConflictError(StringAnalyzerError):
    status_code = 409


class TransientStoreError(StringAnalyzerError):
    """Raised once the retry budget for a transient database failure is spent."""

    status_code = 500

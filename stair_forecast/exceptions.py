class StairForecastError(Exception):
    """Base exception for Stair Forecast system errors."""

    http_status = 500

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Stair Forecast system"
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        """String representation of the error."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class ConfigError(StairForecastError):
    """Exception raised for configuration errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Configuration error"
        super().__init__(message, code, details)


class DatabaseError(StairForecastError):
    """Exception raised for database-related errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Database error"
        super().__init__(message, code, details)


class ValidationError(StairForecastError):
    """Exception raised for data validation errors."""

    http_status = 400

    def __init__(self, message=None, code=None, details=None):
        message = message or "Validation error"
        super().__init__(message, code, details)


class InvalidLabelError(ValidationError):
    """Exception raised when a month label cannot be parsed."""

    def __init__(self, label=None, message=None, code=None, details=None):
        self.label = label
        message = message or f"Invalid month label: {label}"
        details = details or {'label': label}
        super().__init__(message, code or 'INVALID_LABEL', details)


class InvalidMonthIndexError(StairForecastError):
    """Exception raised when a month index falls outside 0-11."""

    def __init__(self, index=None, message=None, code=None, details=None):
        self.index = index
        message = message or f"Unable to format month index: {index}"
        super().__init__(message, code or 'INVALID_MONTH_INDEX', details or {'index': index})


class InvalidVersionSelector(ValidationError):
    """Exception raised for a malformed revision selector."""

    def __init__(self, selector=None, message=None, code=None, details=None):
        self.selector = selector
        message = message or f"Invalid version parameter: {selector}"
        super().__init__(message, code or 'INVALID_VERSION', details or {'version': selector})


class MissingRequiredColumn(ValidationError):
    """Exception raised when an upload header lacks a required column."""

    def __init__(self, column=None, message=None, code=None, details=None):
        self.column = column
        message = message or f'Required column "{column}" not found in upload header'
        super().__init__(message, code or 'MISSING_COLUMN', details or {'column': column})


class RowLevelIngestError(StairForecastError):
    """Exception raised for a single malformed row during ingestion."""

    http_status = 400

    def __init__(self, message=None, row=None, code=None, details=None):
        self.row = row
        message = message or "Invalid row"
        super().__init__(message, code, details)

    def __str__(self):
        if self.row is not None:
            return f"Row {self.row}: {self.message}"
        return self.message


class NotFoundError(StairForecastError):
    """Exception raised when a requested resource is not found."""

    http_status = 404

    def __init__(self, message=None, code=None, details=None):
        message = message or "Resource not found"
        super().__init__(message, code, details)


class DuplicateError(StairForecastError):
    """Exception raised when a resource with the same business key exists."""

    http_status = 409

    def __init__(self, message=None, code=None, details=None):
        message = message or "Resource already exists"
        super().__init__(message, code, details)


class ExportError(StairForecastError):
    """Exception raised for export errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Export error"
        super().__init__(message, code, details)

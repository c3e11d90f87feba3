"""Custom exceptions for arc-data."""


class NotFoundError(Exception):
    """Raised when a requested document is not found."""

    pass


class ValidationError(Exception):
    """Raised when validation fails."""

    pass


class ConflictError(Exception):
    """Raised when a write uses a stale or missing revision."""

    status = 409

    def __init__(self, doc_id: str, message: str = "Document update conflict") -> None:
        super().__init__(message)
        self.doc_id = doc_id


class ImportFormatError(Exception):
    """Raised when import data matches no known file format."""

    pass


class ImportParseError(Exception):
    """Raised when import data is not valid JSON."""

    pass

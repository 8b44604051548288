"""Error taxonomy for the mapping admin client."""
from typing import Optional


class MappingAdminError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MappingAdminError):
    """Input rejected locally; no request was sent."""


class DuplicateFieldError(ValidationError):
    """Two field rows share the same field name."""

    def __init__(self, field_name: str):
        super().__init__(f"Duplicate field name: {field_name}")
        self.field_name = field_name


class IncompleteFieldError(ValidationError):
    """A field row is missing its name or selector."""

    def __init__(self, index: int, message: Optional[str] = None):
        super().__init__(message or f"Field row {index + 1} needs a field name and a selector")
        self.index = index


class UnknownExtractKindError(ValidationError):
    """Extraction kind outside the supported set."""

    def __init__(self, value: str):
        super().__init__(f"Unknown extract kind: {value!r}")
        self.value = value


class NetworkError(MappingAdminError):
    """Request failed, or the backend reported a failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

"""Error types.

Authoring-time mistakes (unknown component refs, unsupported request body
content types) are raised immediately. Request-time failures are
``HTTPError`` subclasses that are handed to the router's error stage and
rendered with their status code.
"""


class RoutedocError(Exception):
    """Base class for all routedoc errors."""


class UnknownComponent(RoutedocError, LookupError):
    """A reference was requested for a component that was never defined."""

    def __init__(self, type: str, name: str):
        super().__init__(f"Unknown {type} ref: {name}")
        self.type = type
        self.name = name


class UnsupportedContentType(RoutedocError, TypeError):
    """A request body content type cannot be turned into a validation schema."""

    def __init__(self, content_type: str):
        super().__init__(f"Validation of content type not supported: {content_type}")
        self.content_type = content_type


class HTTPError(RoutedocError):
    """An error that maps onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"status": self.status_code, "message": self.message}


class RequestValidationFailed(HTTPError):
    """Request headers, params, query or body did not match the operation."""

    status_code = 400

    def __init__(self, validation_errors: list[dict], validation_schema: dict):
        super().__init__("Request validation failed")
        self.validation_errors = validation_errors
        self.validation_schema = validation_schema

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "validationErrors": self.validation_errors,
            "validationSchema": self.validation_schema,
        }


class ComponentNotFound(HTTPError):
    status_code = 404

    def __init__(self, type: str, name: str):
        super().__init__(f"Component does not exist: {type}/{name}")
        self.type = type
        self.name = name

    def to_dict(self) -> dict:
        return {**super().to_dict(), "type": self.type, "name": self.name}

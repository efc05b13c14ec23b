from typing import Dict, List, Optional


class StorefrontError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class BadRequestError(StorefrontError):
    status_code = 400


class ForbiddenError(StorefrontError):
    status_code = 403


class NotFoundError(StorefrontError):
    status_code = 404


class ConflictError(StorefrontError):
    status_code = 409


class ValidationFailed(StorefrontError):
    """Input rejected before any write; carries a per-field message list."""

    status_code = 422

    def __init__(self, errors: Dict[str, List[str]], message: str = "The given data was invalid."):
        super().__init__(message, errors)


class OperationFailed(StorefrontError):
    """A transactional write failed and was rolled back."""

    status_code = 500

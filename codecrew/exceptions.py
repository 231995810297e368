"""
Custom Exceptions for the CodeCrew backend.

Services raise these; main.py maps them onto HTTP responses using
each class's status_code.
"""


class CodeCrewError(Exception):
    """Base exception for all CodeCrew errors."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)


# =============================================================================
# Lookup Exceptions
# =============================================================================

class NotFoundError(CodeCrewError):
    """Raised when a referenced record does not exist."""

    status_code = 404

    def __init__(self, resource: str = "Resource"):
        self.resource = resource
        super().__init__(f"{resource} not found")


class InvalidClassificationTypeError(CodeCrewError):
    """Raised for an unknown classification level name."""

    status_code = 400

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__("Invalid classification type")


class InvalidReferenceError(CodeCrewError):
    """Raised when a payload references records that do not exist."""

    status_code = 400


# =============================================================================
# Authentication / Authorization Exceptions
# =============================================================================

class AuthenticationError(CodeCrewError):
    """Raised for missing, invalid or expired credentials."""

    status_code = 401

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class InvalidCredentialsError(AuthenticationError):
    """Raised when email/password do not match."""

    def __init__(self):
        super().__init__("Invalid credentials")


class ForbiddenError(CodeCrewError):
    """Raised when the caller lacks the role or ownership required."""

    status_code = 403

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)


# =============================================================================
# Write Conflicts
# =============================================================================

class EmailAlreadyRegisteredError(CodeCrewError):
    """Raised on signup with an email that already has an account."""

    status_code = 400

    def __init__(self, email: str):
        self.email = email
        super().__init__("Email already registered")


class ConflictError(CodeCrewError):
    """Raised when a concurrent request wrote the same unique row first."""

    status_code = 409

    def __init__(self, message: str = "Conflicting concurrent update, please retry"):
        super().__init__(message)

"""
Error taxonomy shared by every layer.

Each error carries the HTTP status it maps to at the request boundary
and whether the user may simply retry.
"""


class MedGeniusError(Exception):
    """Base exception for all MedGenius errors."""

    status_code: int = 500

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.message = message
        self.retryable = retryable


class ParseError(MedGeniusError):
    """The AI response could not be extracted, decoded or validated."""

    status_code = 502

    def __init__(
        self,
        message: str = "The AI response could not be interpreted",
        raw_text: str = "",
    ):
        super().__init__(message, retryable=True)
        self.raw_text = raw_text


class NetworkError(MedGeniusError):
    """An upstream call failed (timeout, non-2xx, malformed body)."""

    status_code = 503

    def __init__(self, message: str, source: str, retryable: bool = True):
        super().__init__(message, retryable=retryable)
        self.source = source


class CompoundNotFoundError(MedGeniusError):
    """The compound database has no entry for the requested name."""

    status_code = 404

    def __init__(self, name: str):
        super().__init__(f"No compound found for '{name}'")
        self.name = name


class AuthError(MedGeniusError):
    """Invalid credentials or a missing, tampered or expired token."""

    status_code = 401

    def __init__(self, message: str = "Please authenticate"):
        super().__init__(message)


class DuplicateEmailError(MedGeniusError):
    """Registration attempted with an email that is already taken."""

    status_code = 400

    def __init__(self, email: str):
        super().__init__("Email already registered")
        self.email = email

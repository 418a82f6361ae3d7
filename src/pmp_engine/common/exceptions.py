"""PMP-Engine exception hierarchy.

Each error carries the HTTP status the API layer answers with. Business-level
negatives ("not a winner", "already voted", "already claimed") are not errors
and never pass through here.
"""


class PMPError(Exception):
    """Base exception for all PMP errors."""

    status_code = 500

    def __init__(self, message: str = "", code: str = "PMP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(PMPError):
    """Raised on malformed input; the message is echoed to the caller."""

    status_code = 400

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, code="INVALID_INPUT")


class RateLimitedError(PMPError):
    """Raised when an abuse guard rejects a request."""

    status_code = 429

    def __init__(self, message: str = "Too many requests"):
        super().__init__(message, code="RATE_LIMITED")


class NotFoundError(PMPError):
    """Raised when a lottery, ticket or confession does not exist."""

    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND")


class ConfigurationError(PMPError):
    """Raised when a required secret or credential is missing.

    The detailed message is for server logs only; callers receive
    ``public_message``.
    """

    status_code = 500
    public_message = "Server configuration error"

    def __init__(self, message: str = "Server configuration error"):
        super().__init__(message, code="CONFIG_ERROR")


class StorageError(PMPError):
    """Raised on backing-store failures. Not retried by the engine."""

    status_code = 500

    def __init__(self, message: str = "Storage failure"):
        super().__init__(message, code="STORAGE_ERROR")


class TicketIssuanceError(StorageError):
    """Raised when no unique ticket code could be stored within the attempt cap."""

    def __init__(self, message: str = "Failed to generate unique ticket code"):
        super().__init__(message)
        self.code = "TICKET_EXHAUSTED"

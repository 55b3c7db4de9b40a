"""
Errors raised by the Apple authentication provider.

Provider-reported failures carry the generic "other cause" code the SDK uses for
errors that did not originate on the backend. Transport failures are left as the
underlying httpx exceptions.
"""

OTHER_CAUSE = -1


class AppleAuthError(Exception):
    """An authentication attempt failed on the identity provider's side."""

    def __init__(self, message: str, code: int = OTHER_CAUSE):
        super().__init__(message)
        self.code = code


class ProviderNotInitializedError(AppleAuthError, RuntimeError):
    """Raised when a login is attempted before an application id was configured."""

    def __init__(self, message: str = "You must initialize AppleUtils before attempting an Apple login."):
        super().__init__(message)

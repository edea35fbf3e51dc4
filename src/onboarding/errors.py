"""
Onboarding Error Types.

Collaborators raise these; the orchestrator recovers from all of them
and turns them into a user-facing message.
"""


class OnboardingError(Exception):
    """Base error for onboarding collaborators."""

    code = "ONBOARDING_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class AuthError(OnboardingError):
    """Credential rejected, provider-side failure, or network error."""

    code = "AUTH_ERROR"


class StoreError(OnboardingError):
    """Read or write failure against the user record store."""

    code = "STORE_ERROR"


class PreferenceStoreError(OnboardingError):
    """Local preference persistence failure."""

    code = "PREFERENCE_ERROR"

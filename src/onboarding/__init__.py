"""
Aham Svastha Onboarding.

Decides which screen a user sees next while they pick a username, sign in
or sign up, and fill in the health survey.

Flow:
1. Username - resolved against existing records (sign-in vs sign-up)
2. Authentication - password, one-tap provider token, or anonymous guest
3. Survey - first-time users only; saved to the user's record
"""

from .collaborators import (
    FederatedCredential,
    IdentityProvider,
    PreferenceStore,
    Session,
    UserRecord,
    UserRecordStore,
)
from .errors import AuthError, OnboardingError, PreferenceStoreError, StoreError
from .orchestrator import OnboardingOrchestrator
from .routing import resolve_username, start_route
from .state import OnboardingPhase, Outcome, Route
from .survey import UserSurveyData

__all__ = [
    "OnboardingOrchestrator",
    "OnboardingPhase",
    "Outcome",
    "Route",
    "UserSurveyData",
    "resolve_username",
    "start_route",
    "FederatedCredential",
    "Session",
    "UserRecord",
    "UserRecordStore",
    "IdentityProvider",
    "PreferenceStore",
    "OnboardingError",
    "AuthError",
    "StoreError",
    "PreferenceStoreError",
]

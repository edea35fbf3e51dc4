"""
Onboarding State Management.

Phases the orchestrator moves through, the routes it hands to presentation,
and the result object every orchestrator operation returns.
"""

from dataclasses import dataclass
from enum import Enum


class OnboardingPhase(Enum):
    """Onboarding flow phases. Exactly one is active at a time."""
    IDLE = "idle"                          # No username submitted yet
    LOADING = "loading"                    # A collaborator request is in flight
    AWAITING_SIGN_IN = "awaiting_sign_in"  # Known username, show sign-in
    AWAITING_SIGN_UP = "awaiting_sign_up"  # Unknown username, show sign-up


class Route(Enum):
    """Screens presentation can be told to show next."""
    WELCOME = "welcome"
    SIGN_IN = "sign_in"
    SIGN_UP = "sign_up"
    SURVEY = "survey"
    DASHBOARD = "dashboard"


# Phases each operation may start from. LOADING never appears: a request
# issued while another is in flight is rejected.
ALLOWED_SOURCES: dict[str, frozenset[OnboardingPhase]] = {
    "begin": frozenset({
        OnboardingPhase.IDLE,
        OnboardingPhase.AWAITING_SIGN_IN,
        OnboardingPhase.AWAITING_SIGN_UP,
    }),
    "sign_in_with_password": frozenset({OnboardingPhase.AWAITING_SIGN_IN}),
    "register": frozenset({OnboardingPhase.AWAITING_SIGN_UP}),
    "federated": frozenset({
        OnboardingPhase.IDLE,
        OnboardingPhase.AWAITING_SIGN_IN,
        OnboardingPhase.AWAITING_SIGN_UP,
    }),
    "continue_as_guest": frozenset({
        OnboardingPhase.IDLE,
        OnboardingPhase.AWAITING_SIGN_IN,
        OnboardingPhase.AWAITING_SIGN_UP,
    }),
    "submit_survey": frozenset({
        OnboardingPhase.IDLE,
        OnboardingPhase.AWAITING_SIGN_IN,
        OnboardingPhase.AWAITING_SIGN_UP,
    }),
}


def can_start(operation: str, phase: OnboardingPhase) -> bool:
    """Check if an operation may start from the given phase."""
    return phase in ALLOWED_SOURCES.get(operation, frozenset())


def phase_for_route(route: Route) -> OnboardingPhase:
    """Map a username routing decision to the phase that waits on it."""
    if route == Route.SIGN_IN:
        return OnboardingPhase.AWAITING_SIGN_IN
    if route == Route.SIGN_UP:
        return OnboardingPhase.AWAITING_SIGN_UP
    raise ValueError(f"Route {route.value} has no awaiting phase")


@dataclass(frozen=True)
class Outcome:
    """
    Result of one orchestrator operation.

    Exactly one of these holds:
    - route is set: the operation succeeded, show that screen
    - error/message are set: a collaborator failed, show message
    - rejected: the call was refused and nothing changed
    - stale: the session was reset while the request was in flight
    """
    route: Route | None = None
    error: str | None = None     # Collaborator text, unchanged
    message: str | None = None   # Text for the transient notification
    rejected: bool = False
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.route is not None

    @classmethod
    def success(cls, route: Route) -> "Outcome":
        return cls(route=route)

    @classmethod
    def failure(cls, error: str, message: str | None = None) -> "Outcome":
        return cls(error=error, message=message or error)

    @classmethod
    def refused(cls, reason: str) -> "Outcome":
        return cls(message=reason, rejected=True)

    @classmethod
    def discarded(cls) -> "Outcome":
        return cls(stale=True)

    def to_dict(self) -> dict:
        """Serialize for logging or a JSON response."""
        return {
            "route": self.route.value if self.route else None,
            "error": self.error,
            "message": self.message,
            "rejected": self.rejected,
            "stale": self.stale,
        }

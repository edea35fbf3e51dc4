"""
Onboarding Orchestrator.

Single owner of the onboarding phase and the survey answers. Presentation
sends events in (username submitted, password entered, one-tap result,
survey edits, survey submitted) and gets an Outcome back: a route to show,
or a message to flash.

Rules:
- Only the orchestrator changes the phase.
- One request at a time. Anything that would enter LOADING while a request
  is in flight is rejected, not queued.
- Survey edits are ignored while a request is in flight, so a submit saves
  exactly the answers held in memory.
- Collaborator failures never escape. Each operation falls back to a phase
  the user can retry from and returns the message.
- reset() starts a new session; results from requests issued before it are
  dropped when they complete.
"""

import logging
from dataclasses import dataclass

from .collaborators import (
    SURVEY_COMPLETED_FIELD,
    FederatedCredential,
    IdentityProvider,
    PreferenceStore,
    UserRecordStore,
)
from .errors import AuthError, OnboardingError
from .federated import link_federated_credential
from .routing import (
    find_user_by_username,
    is_username_unique,
    resolve_username,
    route_after_auth,
)
from .state import OnboardingPhase, Outcome, Route, can_start, phase_for_route
from .survey import UserSurveyData

logger = logging.getLogger(__name__)


# Notification text
SIGN_IN_FAILED = "Oops! Unable to sign you in at the moment."
REGISTER_FAILED = "Oops! Unable to register you at the moment."
GUEST_FAILED = "Oops! Unable to log you in at the moment."
LOOKUP_FAILED = "Oops! Unable to look you up at the moment."
USERNAME_TAKEN = "Oops! The username already exists."


@dataclass(frozen=True)
class _Ticket:
    """An in-flight request: which session issued it and where it came from."""
    operation: str
    generation: int
    previous: OnboardingPhase


class OnboardingOrchestrator:
    """
    State machine for the sign-in / sign-up / survey flow.

    Phases: IDLE -> LOADING -> AWAITING_SIGN_IN | AWAITING_SIGN_UP -> LOADING -> done.
    "Done" is not a phase: a successful auth or survey returns a route and
    the phase goes back to IDLE.
    """

    def __init__(
        self,
        store: UserRecordStore,
        identity: IdentityProvider,
        preferences: PreferenceStore,
    ):
        self.store = store
        self.identity = identity
        self.preferences = preferences

        self._phase = OnboardingPhase.IDLE
        self._survey = UserSurveyData()
        self._generation = 0

    # =========================================================================
    # Read-only view for presentation
    # =========================================================================

    @property
    def phase(self) -> OnboardingPhase:
        return self._phase

    @property
    def survey_state(self) -> UserSurveyData:
        return self._survey

    @property
    def can_submit_survey(self) -> bool:
        return self._survey.can_submit

    @property
    def requires_period_date(self) -> bool:
        return self._survey.requires_period_date

    @property
    def formatted_period_date(self) -> str:
        return self._survey.formatted_period_date

    @property
    def is_busy(self) -> bool:
        return self._phase == OnboardingPhase.LOADING

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    def reset(self) -> None:
        """Start a fresh onboarding session. In-flight results become stale."""
        self._generation += 1
        self._phase = OnboardingPhase.IDLE
        self._survey = UserSurveyData()
        logger.info(f"Onboarding session reset (generation {self._generation})")

    def navigate(self, phase: OnboardingPhase) -> bool:
        """
        Move between screens without a request (e.g. back navigation).

        LOADING can't be entered this way, and nothing moves while a
        request is in flight.
        """
        if phase == OnboardingPhase.LOADING or self.is_busy:
            logger.info(f"Ignored navigation to {phase.value} from {self._phase.value}")
            return False
        self._set_phase(phase)
        return True

    async def sign_out(self) -> Outcome:
        """End the identity session and start over at the welcome screen."""
        try:
            await self.identity.sign_out()
        except AuthError as e:
            logger.warning(f"Sign out failed: {e.message}")
            return Outcome.failure(e.message)
        self.reset()
        return Outcome.success(Route.WELCOME)

    # =========================================================================
    # Username resolution
    # =========================================================================

    async def begin(self, username: str) -> Outcome:
        """Route a submitted username to sign-in or sign-up."""
        if not username.strip():
            return Outcome.refused("Please enter a username.")

        ticket = self._enter_loading("begin")
        if isinstance(ticket, Outcome):
            return ticket

        try:
            route = await resolve_username(self.store, username)
        except OnboardingError as e:
            return self._recover(ticket, ticket.previous, e, LOOKUP_FAILED)

        if not self._is_current(ticket):
            return self._stale(ticket)

        self._set_phase(phase_for_route(route))
        return Outcome.success(route)

    # =========================================================================
    # Authentication
    # =========================================================================

    async def sign_in_with_password(self, username: str, password: str) -> Outcome:
        """
        Sign in a known username.

        Failure lands on AWAITING_SIGN_UP: "could not sign in" is treated as
        "try registering".
        """
        ticket = self._enter_loading("sign_in_with_password")
        if isinstance(ticket, Outcome):
            return ticket

        try:
            records = await self.store.fetch_all()
            record = find_user_by_username(records, username)
            if record is None:
                raise AuthError(f"No account found for '{username}'")
            if not record.email:
                raise AuthError("This account has no email address on file")
            await self.identity.sign_in_with_password(record.email, password)
        except OnboardingError as e:
            return self._recover(ticket, OnboardingPhase.AWAITING_SIGN_UP, e, SIGN_IN_FAILED)

        if not self._is_current(ticket):
            return self._stale(ticket)

        self._set_phase(OnboardingPhase.IDLE)
        return Outcome.success(route_after_auth(record))

    async def register(self, username: str, email: str, password: str) -> Outcome:
        """Create an email/password account for a new username."""
        ticket = self._enter_loading("register")
        if isinstance(ticket, Outcome):
            return ticket

        try:
            unique = await is_username_unique(self.store, username)
            if not unique:
                if not self._is_current(ticket):
                    return self._stale(ticket)
                self._set_phase(OnboardingPhase.AWAITING_SIGN_UP)
                return Outcome.failure("The username already exists.", USERNAME_TAKEN)

            session = await self.identity.sign_up_with_password(email, password)
            await self.store.put(session.uid, {"username": username, "email": email}, merge=False)
        except OnboardingError as e:
            return self._recover(ticket, OnboardingPhase.AWAITING_SIGN_UP, e, REGISTER_FAILED)

        if not self._is_current(ticket):
            return self._stale(ticket)

        logger.info(f"Registered new user {session.uid}")
        self._set_phase(OnboardingPhase.IDLE)
        return Outcome.success(Route.SURVEY)

    async def sign_in_or_sign_up_with_federated_credential(
        self,
        credential: FederatedCredential,
        is_sign_in_attempt: bool,
    ) -> Outcome:
        """
        Complete a one-tap sign-in or sign-up.

        On failure the phase goes back to where it was so the user can retry.
        """
        ticket = self._enter_loading("federated")
        if isinstance(ticket, Outcome):
            return ticket

        try:
            linked = await link_federated_credential(
                self.identity, self.store, credential, is_sign_in_attempt
            )
        except AuthError as e:
            return self._recover(ticket, ticket.previous, e, "Error:")
        except OnboardingError as e:
            return self._recover(ticket, ticket.previous, e, REGISTER_FAILED)

        if not self._is_current(ticket):
            return self._stale(ticket)

        self._set_phase(OnboardingPhase.IDLE)
        return Outcome.success(linked.route)

    async def continue_as_guest(self) -> Outcome:
        """Anonymous session. Guests always go to the survey."""
        ticket = self._enter_loading("continue_as_guest")
        if isinstance(ticket, Outcome):
            return ticket

        try:
            await self.identity.sign_in_anonymously()
        except OnboardingError as e:
            return self._recover(ticket, OnboardingPhase.AWAITING_SIGN_UP, e, GUEST_FAILED)

        if not self._is_current(ticket):
            return self._stale(ticket)

        self._set_phase(OnboardingPhase.IDLE)
        return Outcome.success(Route.SURVEY)

    # =========================================================================
    # Survey
    # =========================================================================

    def update_gender(self, index: int) -> UserSurveyData:
        return self._update("gender", lambda s: s.with_gender(index))

    def update_age(self, age: str) -> UserSurveyData:
        return self._update("age", lambda s: s.with_age(age))

    def update_height(self, height: str) -> UserSurveyData:
        return self._update("height", lambda s: s.with_height(height))

    def update_weight(self, weight: str) -> UserSurveyData:
        return self._update("weight", lambda s: s.with_weight(weight))

    def update_lifestyle(self, index: int) -> UserSurveyData:
        return self._update("lifestyle", lambda s: s.with_lifestyle(index))

    def toggle_condition(self, condition: str) -> UserSurveyData:
        return self._update("conditions", lambda s: s.with_condition_toggled(condition))

    def set_period_date(self, epoch_millis: int | None) -> UserSurveyData:
        return self._update("period date", lambda s: s.with_period_date(epoch_millis))

    async def submit_survey(self) -> Outcome:
        """
        Save the survey to the signed-in user's record.

        The record is merged (other fields kept), then the first-run flag is
        cleared. On failure the answers stay in memory so a retry sends the
        same data.
        """
        if not self._survey.can_submit:
            return Outcome.refused("Please fill in your age, height and weight.")

        ticket = self._enter_loading("submit_survey")
        if isinstance(ticket, Outcome):
            return ticket

        answers = self._survey
        try:
            session = await self.identity.current_session()
            if session is None:
                raise AuthError("You need to be signed in to save your answers.")
            fields = {**answers.to_record(), SURVEY_COMPLETED_FIELD: True}
            await self.store.put(session.uid, fields, merge=True)
            await self.preferences.set_first_run(False)
        except OnboardingError as e:
            return self._recover(ticket, OnboardingPhase.AWAITING_SIGN_IN, e, None)

        if not self._is_current(ticket):
            return self._stale(ticket)

        logger.info(f"Survey saved for user {session.uid}")
        self._survey = UserSurveyData()
        self._set_phase(OnboardingPhase.IDLE)
        return Outcome.success(Route.DASHBOARD)

    # =========================================================================
    # Internals
    # =========================================================================

    def _update(self, name: str, change) -> UserSurveyData:
        """Apply a survey edit. Edits are ignored while a request is in flight."""
        if self.is_busy:
            logger.info(f"Ignored {name} edit: a request is in flight")
            return self._survey
        self._survey = change(self._survey)
        return self._survey

    def _set_phase(self, phase: OnboardingPhase) -> None:
        if phase != self._phase:
            logger.info(f"Onboarding phase {self._phase.value} -> {phase.value}")
        self._phase = phase

    def _enter_loading(self, operation: str) -> _Ticket | Outcome:
        """Claim the LOADING phase for an operation, or refuse it."""
        if self.is_busy:
            logger.info(f"Rejected {operation}: another request is in flight")
            return Outcome.refused("Please wait, still working on your last request.")
        if not can_start(operation, self._phase):
            logger.info(f"Rejected {operation} from phase {self._phase.value}")
            return Outcome.refused(f"Can't do that from {self._phase.value}.")

        ticket = _Ticket(operation, self._generation, self._phase)
        self._set_phase(OnboardingPhase.LOADING)
        return ticket

    def _is_current(self, ticket: _Ticket) -> bool:
        return ticket.generation == self._generation

    def _stale(self, ticket: _Ticket) -> Outcome:
        logger.info(f"Dropped result of {ticket.operation}: session was reset")
        return Outcome.discarded()

    def _recover(
        self,
        ticket: _Ticket,
        fallback: OnboardingPhase,
        error: OnboardingError,
        prefix: str | None,
    ) -> Outcome:
        """Move to a retryable phase and report the collaborator's message."""
        if not self._is_current(ticket):
            return self._stale(ticket)

        logger.warning(f"{ticket.operation} failed ({error.code}): {error.message}")
        self._set_phase(fallback)
        message = f"{prefix} {error.message}" if prefix else error.message
        return Outcome.failure(error.message, message)

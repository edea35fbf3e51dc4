"""
Onboarding Survey - Health profile answers.

UserSurveyData is an immutable snapshot; every update returns a new one.
Numbers are kept as the text the user typed so partial input survives, and
are parsed only when a derived value needs them.

Derived values (can_submit, requires_period_date, period text) are computed
on read and never stored.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


# =============================================================================
# Options shown on the survey screen
# =============================================================================

GENDER_OPTIONS = ["Male", "Female"]
FEMALE_INDEX = 1

LIFESTYLE_OPTIONS = ["Sedentary", "Active", "Hectic"]

CONDITION_OPTIONS = ["Diabetes", "Thyroid", "Cholestrol", "Blood Pressure", "Obesity"]

# Period date is asked only above this age
PERIOD_MIN_AGE = 10

PERIOD_PROMPT = "When did your last period start?"
PERIOD_DATE_FORMAT = "%a, %b %d"


def parse_number(text: str) -> int | None:
    """
    Parse a digits field; None for blank or non-numeric input.

    Only ASCII digits with an optional sign count, so "1_1" and non-Latin
    digits are rejected.
    """
    if not isinstance(text, str):
        return None
    text = text.strip()
    digits = text[1:] if text[:1] in ("+", "-") else text
    if not (digits.isascii() and digits.isdigit()):
        return None
    return int(text)


def _to_datetime(epoch_millis: int) -> datetime:
    return datetime.fromtimestamp(epoch_millis / 1000, tz=timezone.utc)


def format_period_date(epoch_millis: int | None) -> str:
    """Format a period start date (UTC), or the prompt if none is set."""
    if epoch_millis is None:
        return PERIOD_PROMPT
    try:
        moment = _to_datetime(epoch_millis)
    except (ValueError, OverflowError, OSError):
        logger.warning(f"Unrepresentable period date: {epoch_millis}")
        return PERIOD_PROMPT
    return moment.strftime(PERIOD_DATE_FORMAT)


@dataclass(frozen=True)
class UserSurveyData:
    """Answers collected across the survey screen."""
    gender_index: int = 0
    age: str = ""
    height: str = ""      # cm
    weight: str = ""      # kg
    lifestyle_index: int = 0
    selected_conditions: frozenset[str] = field(default_factory=frozenset)
    last_period_start_epoch_millis: int | None = None

    # -------------------------------------------------------------------------
    # Derived
    # -------------------------------------------------------------------------

    @property
    def can_submit(self) -> bool:
        """Age, height and weight must all be non-blank."""
        return bool(self.age.strip() and self.height.strip() and self.weight.strip())

    @property
    def parsed_age(self) -> int | None:
        return parse_number(self.age)

    @property
    def requires_period_date(self) -> bool:
        """Female and older than PERIOD_MIN_AGE. Does not gate can_submit."""
        return self.gender_index == FEMALE_INDEX and (self.parsed_age or 0) > PERIOD_MIN_AGE

    @property
    def formatted_period_date(self) -> str:
        return format_period_date(self.last_period_start_epoch_millis)

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def with_gender(self, index: int) -> "UserSurveyData":
        if not 0 <= index < len(GENDER_OPTIONS):
            raise ValueError(f"Gender index out of range: {index}")
        return replace(self, gender_index=index)

    def with_age(self, age: str) -> "UserSurveyData":
        return replace(self, age=age)

    def with_height(self, height: str) -> "UserSurveyData":
        return replace(self, height=height)

    def with_weight(self, weight: str) -> "UserSurveyData":
        return replace(self, weight=weight)

    def with_lifestyle(self, index: int) -> "UserSurveyData":
        if not 0 <= index < len(LIFESTYLE_OPTIONS):
            raise ValueError(f"Lifestyle index out of range: {index}")
        return replace(self, lifestyle_index=index)

    def with_condition_toggled(self, condition: str) -> "UserSurveyData":
        """Add the condition if absent, remove it if present."""
        if condition in self.selected_conditions:
            return replace(self, selected_conditions=self.selected_conditions - {condition})
        if condition not in CONDITION_OPTIONS:
            # Accept, but note it for review
            logger.info(f"Custom condition selected: {condition}")
        return replace(self, selected_conditions=self.selected_conditions | {condition})

    def with_period_date(self, epoch_millis: int | None) -> "UserSurveyData":
        if epoch_millis is not None:
            try:
                _to_datetime(epoch_millis)
            except (ValueError, OverflowError, OSError) as e:
                raise ValueError(f"Period date out of range: {epoch_millis}") from e
        return replace(self, last_period_start_epoch_millis=epoch_millis)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_record(self) -> dict:
        """
        Fields written to the user's record on submission.

        Values are stored as entered; the period date may be None.
        """
        return {
            "gender": self.gender_index,
            "age": self.age,
            "height": self.height,
            "weight": self.weight,
            "lifestyle": self.lifestyle_index,
            "conditions": sorted(self.selected_conditions),
            "period_start": self.last_period_start_epoch_millis,
        }


def get_survey_options() -> dict:
    """Option lists for rendering the survey screen."""
    return {
        "genders": GENDER_OPTIONS,
        "lifestyles": LIFESTYLE_OPTIONS,
        "conditions": CONDITION_OPTIONS,
        "period_prompt": PERIOD_PROMPT,
    }

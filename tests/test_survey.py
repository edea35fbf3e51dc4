"""
Tests for the survey aggregate.

Covers:
- can_submit (age/height/weight non-blank, nothing else)
- requires_period_date (female and older than 10)
- condition toggling
- period date formatting and the stored record
"""

import pytest

from onboarding.survey import (
    PERIOD_PROMPT,
    UserSurveyData,
    format_period_date,
    get_survey_options,
    parse_number,
)


def _filled(**overrides) -> UserSurveyData:
    data = UserSurveyData(age="29", height="170", weight="65")
    for name, value in overrides.items():
        data = getattr(data, f"with_{name}")(value)
    return data


class TestCanSubmit:
    """can_submit is derived from age, height and weight only."""

    def test_empty_survey_cannot_submit(self):
        assert UserSurveyData().can_submit is False

    @pytest.mark.parametrize("blank", ["age", "height", "weight"])
    def test_any_blank_required_field_blocks(self, blank):
        assert _filled(**{blank: ""}).can_submit is False

    def test_whitespace_counts_as_blank(self):
        assert _filled(weight="   ").can_submit is False

    def test_all_required_fields_allow_submit(self):
        assert _filled().can_submit is True

    def test_other_fields_do_not_matter(self):
        data = _filled().with_gender(1).with_lifestyle(2).with_condition_toggled("Thyroid")
        assert data.can_submit is True
        # Period date is not required even when it is asked for
        assert data.requires_period_date is True
        assert data.last_period_start_epoch_millis is None


class TestRequiresPeriodDate:
    """Asked only for female users older than 10."""

    def test_female_over_ten(self):
        assert _filled(gender=1, age="11").requires_period_date is True

    def test_female_exactly_ten(self):
        assert _filled(gender=1, age="10").requires_period_date is False

    def test_male_never_asked(self):
        assert _filled(gender=0, age="40").requires_period_date is False

    @pytest.mark.parametrize("age", ["", "abc", "12a", "-5", "1_1", "١٢", "１２"])
    def test_non_numeric_or_negative_age(self, age):
        assert _filled(gender=1, age=age).requires_period_date is False


class TestUpdates:
    """Updates return new snapshots and leave the old one untouched."""

    def test_update_returns_new_snapshot(self):
        original = UserSurveyData()
        updated = original.with_age("30")
        assert original.age == ""
        assert updated.age == "30"

    def test_toggle_twice_restores_set(self):
        data = UserSurveyData().with_condition_toggled("Diabetes")
        before = data.selected_conditions
        after = data.with_condition_toggled("Obesity").with_condition_toggled("Obesity")
        assert after.selected_conditions == before

    def test_toggle_removes_present_condition(self):
        data = UserSurveyData().with_condition_toggled("Diabetes").with_condition_toggled("Diabetes")
        assert data.selected_conditions == frozenset()

    def test_custom_condition_accepted(self):
        data = UserSurveyData().with_condition_toggled("Asthma")
        assert "Asthma" in data.selected_conditions

    def test_gender_out_of_range(self):
        with pytest.raises(ValueError):
            UserSurveyData().with_gender(2)

    def test_lifestyle_out_of_range(self):
        with pytest.raises(ValueError):
            UserSurveyData().with_lifestyle(3)


class TestPeriodDate:
    def test_prompt_when_unset(self):
        assert UserSurveyData().formatted_period_date == PERIOD_PROMPT

    def test_formats_utc_date(self):
        # 2023-01-02T00:00:00Z
        assert format_period_date(1672617600000) == "Mon, Jan 02"

    def test_clearing_date_restores_prompt(self):
        data = UserSurveyData().with_period_date(1672617600000).with_period_date(None)
        assert data.formatted_period_date == PERIOD_PROMPT

    def test_out_of_range_date_rejected(self):
        with pytest.raises(ValueError):
            UserSurveyData().with_period_date(10**18)

    def test_unrepresentable_date_reads_as_prompt(self):
        data = UserSurveyData(last_period_start_epoch_millis=10**18)
        assert data.formatted_period_date == PERIOD_PROMPT


class TestRecord:
    def test_record_keeps_values_as_entered(self):
        data = (
            _filled(gender=1, lifestyle=2)
            .with_condition_toggled("Thyroid")
            .with_condition_toggled("Blood Pressure")
        )
        record = data.to_record()
        assert record == {
            "gender": 1,
            "age": "29",
            "height": "170",
            "weight": "65",
            "lifestyle": 2,
            "conditions": ["Blood Pressure", "Thyroid"],
            "period_start": None,
        }

    def test_parse_number(self):
        assert parse_number("42") == 42
        assert parse_number(" 7 ") == 7
        assert parse_number("") is None
        assert parse_number("4.5") is None
        assert parse_number("+12") == 12
        assert parse_number("1_000") is None
        assert parse_number("\u0661\u0662") is None

    def test_options(self):
        options = get_survey_options()
        assert options["genders"] == ["Male", "Female"]
        assert options["lifestyles"] == ["Sedentary", "Active", "Hectic"]
        assert "Diabetes" in options["conditions"]

"""Tests for row normalization: header aliases, names, dates and defaults."""

from datetime import date, datetime, timedelta, timezone

import pytest

from app.pipeline.errors import RowProcessingError
from app.processing.normalization import (
    DEFAULT_DATE_OF_BIRTH,
    DEFAULT_POLICY_TERM,
    parse_datetime,
    parse_gender,
    pick,
    pick_text,
    policy_terms,
    split_name,
    to_text,
    user_email,
    user_profile,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestPick:
    def test_first_alias_wins(self):
        row = {"policy_number": "A1", "policyNumber": "B2", "Policy Number": "C3"}
        assert pick(row, "policy_number") == "A1"

    def test_blank_values_fall_through(self):
        row = {"policy_number": "   ", "Policy Number": "C3"}
        assert pick(row, "policy_number") == "C3"

    def test_missing_field_is_none(self):
        assert pick({"unrelated": "x"}, "carrier") is None

    def test_spreadsheet_floats_lose_trailing_zero(self):
        assert pick_text({"zip": 67202.0}, "zip_code") == "67202"
        assert to_text(12.5) == "12.5"


class TestNames:
    def test_combined_name_is_split(self):
        assert split_name("Jane Q Public") == ("Jane", "Q Public")

    def test_single_token_uses_fallback_last_name(self):
        assert split_name("Jane", "Doe") == ("Jane", "Doe")

    def test_single_token_without_fallback(self):
        assert split_name("Jane") == ("Jane", "")


class TestGender:
    @pytest.mark.parametrize("raw, expected", [
        ("male", "Male"), ("F", "Female"), ("Other", "Other"), (None, "Other"),
    ])
    def test_known_values(self, raw, expected):
        assert parse_gender(raw) == expected

    def test_unknown_value_is_a_row_error(self):
        with pytest.raises(RowProcessingError):
            parse_gender("unknown")


class TestDates:
    def test_naive_values_are_read_as_utc(self):
        assert parse_datetime("2020-03-01", "start") == datetime(2020, 3, 1, tzinfo=timezone.utc)

    def test_spreadsheet_dates_pass_through(self):
        assert parse_datetime(date(2020, 3, 1), "start").tzinfo is timezone.utc

    def test_garbage_is_a_row_error(self):
        with pytest.raises(RowProcessingError, match="Invalid start"):
            parse_datetime("not a date", "start")


class TestUserProfile:
    def test_no_name_means_no_user(self):
        assert user_profile({"email": "someone@example.com"}) is None

    def test_defaults_fill_missing_fields(self):
        profile = user_profile({"firstName": "Ada"})

        assert profile["first_name"] == "Ada"
        assert profile["email"] == "ada@example.com"
        assert profile["date_of_birth"] == DEFAULT_DATE_OF_BIRTH
        assert profile["gender"] == "Other"
        assert profile["zip_code"] == "00000"
        assert profile["user_type"] == "Standard"

    def test_email_is_lowercased_and_trimmed(self):
        profile = user_profile({"firstname": "Ada Lovelace", "email": "  Ada@Example.COM "})
        assert profile["email"] == "ada@example.com"
        assert profile["last_name"] == "Lovelace"

    def test_email_key_ignores_invalid_profile_fields(self):
        row = {"firstname": "Ada", "email": "Ada@Example.com", "gender": "X", "dob": "never"}

        assert user_email(row) == "ada@example.com"
        with pytest.raises(RowProcessingError):
            user_profile(row)

    def test_email_key_needs_a_name(self):
        assert user_email({"email": "someone@example.com"}) is None


class TestPolicyTerms:
    def test_without_policy_number(self):
        assert policy_terms({"policy_start_date": "2020-01-01"}, NOW) is None

    def test_missing_dates_default_to_a_one_year_term(self):
        terms = policy_terms({"policyNumber": "P-1"}, NOW)
        assert terms.start == NOW
        assert terms.end == NOW + DEFAULT_POLICY_TERM

    def test_start_must_precede_end(self):
        row = {"policy_number": "P-1", "policy_start_date": "2021-01-01", "policy_end_date": "2021-01-01"}
        with pytest.raises(RowProcessingError, match="Policy start date must be before end date"):
            policy_terms(row, NOW)

    def test_explicit_dates(self):
        row = {"policy_number": "P-1", "policy_start_date": "2021-01-01", "policy_end_date": "2022-01-01"}
        terms = policy_terms(row, NOW)
        assert terms.end - terms.start == timedelta(days=365)

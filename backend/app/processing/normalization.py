"""
Row normalization: maps loosely named upload columns onto domain fields.

Uploaded sheets come from different systems, so one logical field can
arrive under several header spellings.  FIELD_ALIASES lists them in
priority order; the first present, non-blank value wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Mapping

from dateutil import parser as date_parser

from app.core.constants import Gender
from app.pipeline.errors import RowProcessingError

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "agent": ("agent", "agentName", "agent_name", "Agent Name"),
    "first_name": ("firstname", "firstName", "first_name", "First Name"),
    "last_name": ("lastname", "lastName", "last_name", "Last Name"),
    "date_of_birth": ("dob", "dateOfBirth", "Date of Birth"),
    "street": ("address", "street", "Street Address"),
    "city": ("city", "City"),
    "state": ("state", "State"),
    "zip_code": ("zip", "zipCode", "zip_code", "Zip Code"),
    "phone_number": ("phone", "phoneNumber", "phone_number", "Phone Number"),
    "email": ("email", "Email"),
    "gender": ("gender", "Gender"),
    "user_type": ("userType", "user_type", "User Type"),
    "account_name": ("account_name", "accountName", "Account Name"),
    "category": ("category_name", "categoryName", "Category Name", "lob", "LOB"),
    "carrier": ("company_name", "companyName", "Company Name", "carrier", "Carrier"),
    "policy_number": ("policy_number", "policyNumber", "Policy Number"),
    "policy_start_date": ("policy_start_date", "policyStartDate", "Policy Start Date"),
    "policy_end_date": ("policy_end_date", "policyEndDate", "Policy End Date"),
}

DEFAULT_DATE_OF_BIRTH = date(1990, 1, 1)
DEFAULT_POLICY_TERM = timedelta(days=365)

_PROFILE_DEFAULTS = {
    "street": "Unknown Street",
    "city": "Unknown City",
    "state": "Unknown State",
    "zip_code": "00000",
    "phone_number": "",
    "user_type": "Standard",
}

_GENDER_ALIASES = {
    "male": Gender.MALE,
    "m": Gender.MALE,
    "female": Gender.FEMALE,
    "f": Gender.FEMALE,
    "other": Gender.OTHER,
}


def to_text(value: Any) -> str:
    """Render a cell as text; integral floats from spreadsheets lose their `.0`."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value).strip()


def pick(row: Mapping[str, Any], field: str) -> Any:
    """First non-blank value among the field's header spellings, or None."""
    for header in FIELD_ALIASES[field]:
        value = row.get(header)
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        return value
    return None


def pick_text(row: Mapping[str, Any], field: str) -> str | None:
    value = pick(row, field)
    if value is None:
        return None
    return to_text(value) or None


def split_name(full_name: str, fallback_last_name: str | None = None) -> tuple[str, str]:
    """Split "Jane Q Public" into ("Jane", "Q Public").

    A single token keeps the separate last-name column (if any).
    """
    parts = full_name.split()
    first = parts[0] if parts else ""
    last = " ".join(parts[1:]) or fallback_last_name or ""
    return first, last


def parse_datetime(value: Any, field: str) -> datetime:
    """Coerce a cell into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = date_parser.parse(to_text(value))
        except (ValueError, OverflowError) as exc:
            raise RowProcessingError(f"Invalid {field}: {value!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_gender(value: Any) -> str:
    if value is None:
        return Gender.OTHER.value
    gender = _GENDER_ALIASES.get(to_text(value).lower())
    if gender is None:
        raise RowProcessingError(f"Invalid gender: {value!r} (expected Male, Female or Other)")
    return gender.value


@dataclass
class PolicyTerms:
    policy_number: str
    start: datetime
    end: datetime


def user_email(row: Mapping[str, Any]) -> str | None:
    """The dedup key for a row's user, or None when no name is given."""
    full_name = pick_text(row, "first_name")
    if not full_name:
        return None
    first_name, _ = split_name(full_name)
    return (pick_text(row, "email") or f"{first_name or 'user'}@example.com").lower()


def user_profile(row: Mapping[str, Any]) -> dict[str, Any] | None:
    """Build User column values from a row, or None when no name is given.

    Only called when the user has to be created; gender and date of
    birth are validated here.
    """
    email = user_email(row)
    if email is None:
        return None

    first_name, last_name = split_name(pick_text(row, "first_name"), pick_text(row, "last_name"))

    dob_value = pick(row, "date_of_birth")
    date_of_birth = (
        parse_datetime(dob_value, "date of birth").date()
        if dob_value is not None
        else DEFAULT_DATE_OF_BIRTH
    )

    profile: dict[str, Any] = {
        "first_name": first_name,
        "last_name": last_name,
        "date_of_birth": date_of_birth,
        "email": email,
        "gender": parse_gender(pick(row, "gender")),
    }
    for field, default in _PROFILE_DEFAULTS.items():
        profile[field] = pick_text(row, field) or default
    return profile


def policy_terms(row: Mapping[str, Any], now: datetime) -> PolicyTerms | None:
    """Policy number plus coverage window, or None without a policy number.

    Missing dates default to `now` and `now + 365 days`.
    """
    policy_number = pick_text(row, "policy_number")
    if not policy_number:
        return None

    start_value = pick(row, "policy_start_date")
    end_value = pick(row, "policy_end_date")
    start = parse_datetime(start_value, "policy start date") if start_value is not None else now
    end = (
        parse_datetime(end_value, "policy end date")
        if end_value is not None
        else now + DEFAULT_POLICY_TERM
    )
    if start >= end:
        raise RowProcessingError("Policy start date must be before end date")
    return PolicyTerms(policy_number=policy_number, start=start, end=end)

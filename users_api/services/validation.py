from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from email_validator import EmailNotValidError, validate_email

from users_api.models.user import Sex, User

PHONE_PATTERN = re.compile(r"^(8|\+7)[\- ]?(\(?\d{3}\)?[\- ]?)?[\d\- ]{6,10}$")

EMAIL_BLANK = "Email must not be blank."
EMAIL_INVALID = "Invalid email format."
EMAIL_TAKEN = "Email is already taken."
NAME_BLANK = "Name must not be blank."
AGE_INVALID = "Age must be a positive number."
SEX_INVALID = "Sex must be either 'male' or 'female'."
PHONE_INVALID = "Invalid phone number format."
BIRTHDAY_MISSING = "Birthday must not be empty."

# largest value the INTEGER age column holds on every supported backend
MAX_AGE = 2**31 - 1

Rule = Callable[[User], str | None]


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def email_not_blank(user: User) -> str | None:
    return EMAIL_BLANK if _is_blank(user.email) else None


def email_syntax(user: User) -> str | None:
    # blank values are reported by email_not_blank alone
    if user.email is None or not user.email.strip():
        return None
    try:
        validate_email(user.email, check_deliverability=False)
    except EmailNotValidError:
        return EMAIL_INVALID
    return None


def name_not_blank(user: User) -> str | None:
    return NAME_BLANK if _is_blank(user.name) else None


def age_positive(user: User) -> str | None:
    if user.age is None or not 0 < user.age <= MAX_AGE:
        return AGE_INVALID
    return None


def sex_choice(user: User) -> str | None:
    if user.sex not in {choice.value for choice in Sex}:
        return SEX_INVALID
    return None


def phone_format(user: User) -> str | None:
    if user.phone is None or PHONE_PATTERN.fullmatch(user.phone) is None:
        return PHONE_INVALID
    return None


def birthday_present(user: User) -> str | None:
    return BIRTHDAY_MISSING if user.birthday is None else None


# Email uniqueness is enforced by the uq_user_email constraint at write time.
USER_RULES: tuple[Rule, ...] = (
    email_not_blank,
    email_syntax,
    name_not_blank,
    age_positive,
    sex_choice,
    phone_format,
    birthday_present,
)


def validate_user(user: User, rules: Sequence[Rule] = USER_RULES) -> list[str]:
    """Run every rule against ``user`` and collect the failure messages in order."""
    messages: list[str] = []
    for rule in rules:
        message = rule(user)
        if message is not None:
            messages.append(message)
    return messages

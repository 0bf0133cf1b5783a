"""
Declarative per-field rules for registration and login payloads.

Pure functions only: no I/O and no state. Each field is checked on its own and
every failing field is reported; within a field the first broken rule wins.
"""

import html
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

# local@domain.tld with dot-separated domain labels and an alphabetic TLD of 2+ chars.
# Labels cannot contain dots, so the pattern has no ambiguous nested repetition.
_EMAIL_PATTERN = re.compile(
    r"^[A-Za-z0-9_+-]+(?:\.[A-Za-z0-9_+-]+)*"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)*"
    r"\.[A-Za-z]{2,}$"
)
_DIGIT_PATTERN = re.compile(r"\d")
_UPPER_PATTERN = re.compile(r"[A-Z]")

EMAIL_MAX_LEN = 254
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128
NAME_MIN_LEN = 2
NAME_MAX_LEN = 255

# A check returns True when the (trimmed) value passes.
Check = Callable[[str], bool]


def _min_length(n: int) -> Check:
    return lambda v: len(v) >= n


def _max_length(n: int) -> Check:
    return lambda v: len(v) <= n


def _matches(pattern: re.Pattern[str]) -> Check:
    return lambda v: pattern.search(v) is not None


def _escape(value: str) -> str:
    return html.escape(value, quote=True)


@dataclass(frozen=True)
class FieldRule:
    """Rules for one field: required message, ordered checks, normalizer."""

    name: str
    required_message: str
    checks: tuple[tuple[Check, str], ...] = ()
    normalize: Callable[[str], str] = lambda v: v


@dataclass
class ValidationResult:
    """Outcome of validating one payload."""

    field_errors: dict[str, str] = field(default_factory=dict)
    missing: tuple[str, ...] = ()
    values: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.field_errors

    @property
    def only_missing(self) -> bool:
        """True when every error is an absent required field."""
        return bool(self.missing) and set(self.field_errors) == set(self.missing)


EMAIL_RULE = FieldRule(
    name="email",
    required_message="Email is required",
    checks=(
        (_max_length(EMAIL_MAX_LEN), "Please enter a valid email"),
        (_matches(_EMAIL_PATTERN), "Please enter a valid email"),
    ),
    normalize=str.lower,
)

REGISTRATION_PASSWORD_RULE = FieldRule(
    name="password",
    required_message="Password is required",
    checks=(
        (_min_length(PASSWORD_MIN_LEN), "Password must be at least 8 characters"),
        (_max_length(PASSWORD_MAX_LEN), "Password must be at most 128 characters"),
        (_matches(_DIGIT_PATTERN), "Password must contain at least one number"),
        (_matches(_UPPER_PATTERN), "Password must contain at least one uppercase letter"),
    ),
)

# Strength rules are enforced once, at registration; login only checks shape.
LOGIN_PASSWORD_RULE = FieldRule(
    name="password",
    required_message="Password is required",
    checks=(
        (_min_length(PASSWORD_MIN_LEN), "Password must be at least 8 characters"),
        (_max_length(PASSWORD_MAX_LEN), "Password must be at most 128 characters"),
    ),
)

NAME_RULE = FieldRule(
    name="name",
    required_message="Name is required",
    checks=(
        (_min_length(NAME_MIN_LEN), "Name must be at least 2 characters long"),
        (_max_length(NAME_MAX_LEN), "Name must be at most 255 characters long"),
    ),
    normalize=_escape,
)

RULESETS: dict[str, tuple[FieldRule, ...]] = {
    "registration": (EMAIL_RULE, REGISTRATION_PASSWORD_RULE, NAME_RULE),
    "login": (EMAIL_RULE, LOGIN_PASSWORD_RULE),
}


def check_field(rule: FieldRule, raw: str | None) -> tuple[str | None, str | None]:
    """
    Apply one rule to a raw value.
    Returns (normalized_value, None) on success or (None, message) on failure.
    """
    value = raw.strip() if isinstance(raw, str) else ""
    if not value:
        return None, rule.required_message
    for check, message in rule.checks:
        if not check(value):
            return None, message
    return rule.normalize(value), None


def validate(payload: Mapping[str, str | None], ruleset: str) -> ValidationResult:
    """
    Validate payload against the named rule set ('registration' or 'login').
    Unknown rule set names raise KeyError. Fields outside the rule set are dropped.
    """
    result = ValidationResult()
    missing: list[str] = []
    for rule in RULESETS[ruleset]:
        raw = payload.get(rule.name)
        value, error = check_field(rule, raw)
        if error is not None:
            result.field_errors[rule.name] = error
            if not (isinstance(raw, str) and raw.strip()):
                missing.append(rule.name)
        else:
            result.values[rule.name] = value
    result.missing = tuple(missing)
    return result

"""
Field rules for personnel records, login credentials and listing parameters.

Every field is checked in one pass and every failure is collected, so callers
get the full error set keyed by field name instead of the first problem only.
Rules are small callables; the ones that depend on outside state (uniqueness)
take that state as constructor arguments.
"""
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from email_validator import EmailNotValidError, validate_email

from utils.personnel_store import exists_by

# letters only (\w minus digits and underscore)
_L = r"[^\W\d_]"

PREFIX_RE = re.compile(rf"^(?:{_L}|\.)(?:{_L}|[.\s])*(?:{_L}|\.)$")
NAME_RE = re.compile(rf"^{_L}(?:{_L}|[\s'-])*{_L}$")
MOBILE_RE = re.compile(r"^(\+?[1-9]\d{0,3})?[\s\-()]?[1-9][\d\s\-()]*\d$", re.ASCII)
SEARCH_RE = re.compile(r"^[a-zA-Z0-9\s@.\-_+()]*$")
ALPHA_DASH_RE = re.compile(r"^[\w-]+$")

# keeps the computed OFFSET inside a 64-bit SQL integer
MAX_PAGE = 2 ** 31 - 1

PREFIX_REJECTS = (re.compile(r"\.{2,}"), re.compile(r"\s{2,}"))
NAME_REJECTS = (re.compile(r"\s{2,}"), re.compile(r"-{2,}"), re.compile(r"''"))
MOBILE_REJECTS = (
    re.compile(r"^[+\-\s()]+$", re.ASCII),
    re.compile(r"\+{2,}"),
    re.compile(r"-{3,}"),
    re.compile(r"\s{3,}", re.ASCII),
    re.compile(r"[()]{3,}"),
    re.compile(r"\+.*\+"),
)

Errors = Dict[str, List[str]]


class Rule:
    # stop checking the field once this rule fails
    bail = False

    def __call__(self, label: str, value) -> Optional[str]:
        raise NotImplementedError


class IsString(Rule):
    bail = True

    def __call__(self, label, value):
        if not isinstance(value, str):
            return f"The {label} field must be a string."
        return None


class Length(Rule):
    def __init__(self, min_len: int = 0, max_len: Optional[int] = None):
        self.min_len = min_len
        self.max_len = max_len

    def __call__(self, label, value):
        if len(value) < self.min_len:
            return f"The {label} field must be at least {self.min_len} characters."
        if self.max_len is not None and len(value) > self.max_len:
            return f"The {label} field must not be greater than {self.max_len} characters."
        return None


class Matches(Rule):
    def __init__(self, pattern: re.Pattern, message: Optional[str] = None):
        self.pattern = pattern
        self.message = message

    def __call__(self, label, value):
        if not self.pattern.match(value):
            return self.message or f"The {label} field format is invalid."
        return None


class Rejects(Rule):
    """Fails when any of the patterns is found anywhere in the value."""

    def __init__(self, patterns: Sequence[re.Pattern], message: Optional[str] = None):
        self.patterns = patterns
        self.message = message

    def __call__(self, label, value):
        if any(p.search(value) for p in self.patterns):
            return self.message or f"The {label} format is invalid."
        return None


class MinDigits(Rule):
    def __init__(self, count: int):
        self.count = count

    def __call__(self, label, value):
        cleaned = re.sub(r"[^+0-9]", "", value)
        if len(re.sub(r"\D", "", cleaned)) < self.count:
            return f"The {label} must contain at least {self.count} digits."
        return None


class ValidEmail(Rule):
    def __init__(self, check_deliverability: bool = False):
        self.check_deliverability = check_deliverability

    def __call__(self, label, value):
        try:
            validate_email(value, check_deliverability=self.check_deliverability)
        except EmailNotValidError:
            return f"The {label} field must be a valid email address."
        return None


class Unique(Rule):
    """Value must not exist on another live record (soft-deleted rows ignored)."""

    def __init__(self, column: str, exclude_id: Optional[int] = None,
                 exists: Optional[Callable[..., bool]] = None):
        self.column = column
        self.exclude_id = exclude_id
        self._exists = exists or exists_by

    def __call__(self, label, value):
        if self._exists(self.column, value, exclude_id=self.exclude_id):
            return f"The {label} has already been taken."
        return None


class OneOf(Rule):
    def __init__(self, choices: Sequence[str]):
        self.choices = choices

    def __call__(self, label, value):
        if value not in self.choices:
            return f"The selected {label} is invalid."
        return None


class IntegerBetween(Rule):
    bail = True

    def __init__(self, min_value: Optional[int] = None, max_value: Optional[int] = None):
        self.min_value = min_value
        self.max_value = max_value

    def __call__(self, label, value):
        try:
            number = int(str(value).strip())
        except ValueError:
            return f"The {label} field must be an integer."
        if self.min_value is not None and number < self.min_value:
            return f"The {label} field must be at least {self.min_value}."
        if self.max_value is not None and number > self.max_value:
            return f"The {label} field must not be greater than {self.max_value}."
        return None


@dataclass
class FieldSpec:
    name: str
    rules: List[Rule] = field(default_factory=list)
    required: bool = True
    # only validated when the field is present (partial updates)
    sometimes: bool = False

    @property
    def label(self) -> str:
        return self.name.replace("_", " ")


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate(data: dict, specs: Sequence[FieldSpec]) -> Errors:
    errors: Errors = {}
    for spec in specs:
        if spec.sometimes and spec.name not in data:
            continue

        value = data.get(spec.name)
        if _is_blank(value):
            if spec.required:
                errors[spec.name] = [f"The {spec.label} field is required."]
            continue

        messages: List[str] = []
        for rule in spec.rules:
            message = rule(spec.label, value)
            if not message:
                continue
            if message not in messages:
                messages.append(message)
            if rule.bail:
                break
        if messages:
            errors[spec.name] = messages
    return errors


def personnel_specs(record_id: Optional[int] = None, partial: bool = False,
                    check_deliverability: bool = True, exists=None) -> List[FieldSpec]:
    """record_id excludes the record itself from uniqueness checks on update."""
    return [
        FieldSpec("prefix", [
            IsString(), Length(2, 20), Matches(PREFIX_RE), Rejects(PREFIX_REJECTS),
        ], sometimes=partial),
        FieldSpec("first_name", [
            IsString(), Length(2, 100), Matches(NAME_RE), Rejects(NAME_REJECTS),
        ], sometimes=partial),
        FieldSpec("last_name", [
            IsString(), Length(2, 100), Matches(NAME_RE), Rejects(NAME_REJECTS),
        ], sometimes=partial),
        FieldSpec("mobile_number", [
            IsString(), Length(7, 20), Matches(MOBILE_RE), MinDigits(7), Rejects(MOBILE_REJECTS),
            Unique("mobile_number", exclude_id=record_id, exists=exists),
        ], sometimes=partial),
        FieldSpec("email", [
            IsString(), Length(5, 255), ValidEmail(check_deliverability),
            Unique("email", exclude_id=record_id, exists=exists),
        ], sometimes=partial),
    ]


def validate_personnel(data: dict, record_id: Optional[int] = None, partial: bool = False,
                       check_deliverability: bool = True, exists=None) -> Errors:
    return validate(data, personnel_specs(record_id, partial, check_deliverability, exists))


LOGIN_SPECS = [
    FieldSpec("email", [IsString(), Length(0, 255), ValidEmail(check_deliverability=False)]),
    FieldSpec("password", [IsString(), Length(8, 255)]),
]


def validate_login(data: dict) -> Errors:
    return validate(data, LOGIN_SPECS)


def listing_specs(max_per_page: int = 100) -> List[FieldSpec]:
    return [
        FieldSpec("search", [IsString(), Length(0, 100), Matches(SEARCH_RE)], required=False),
        FieldSpec("sort_by", [IsString(), Length(0, 50), Matches(ALPHA_DASH_RE)], required=False),
        FieldSpec("sort_order", [OneOf(("asc", "desc"))], required=False),
        FieldSpec("per_page", [IntegerBetween(1, max_per_page)], required=False),
        FieldSpec("page", [IntegerBetween(1, MAX_PAGE)], required=False),
    ]


def validate_listing(params: dict, max_per_page: int = 100) -> Errors:
    return validate(params, listing_specs(max_per_page))

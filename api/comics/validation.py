"""
Per-field request validation.

A rule set is an ordered list of `(field, [Rule, ...])`. For each field the
rules run in order and stop at the first failure, so a database-backed check
only runs once the cheap structural checks on that field have passed. Errors
are collected across all fields and reported together, keyed by field name:

    {"isbn": {"location": "body", "param": "isbn", "value": "12", "msg": "Invalid value"}}
"""

from __future__ import annotations

import inspect
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Union

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Invalid value"

# Optional sign, optional decimal part: "12", "-3", "+4.5", ".5".
_NUMERIC_RE = re.compile(r"[+-]?([0-9]*[.])?[0-9]+")

Check = Callable[[str], Union[bool, Awaitable[bool]]]


@dataclass(frozen=True)
class Rule:
    check: Check
    message: str = DEFAULT_MESSAGE

    async def passes(self, value: str) -> bool:
        result = self.check(value)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)


RuleSet = list[tuple[str, list[Rule]]]


@dataclass(frozen=True)
class FieldError:
    location: str
    param: str
    value: Any
    msg: str

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"location": self.location, "param": self.param}
        # A missing field has no `value` key at all.
        if self.value is not None:
            data["value"] = self.value
        data["msg"] = self.msg
        return data


class ValidationFailed(Exception):
    """
    Raised when at least one field failed; rendered as HTTP 422.
    """

    def __init__(self, errors: dict[str, FieldError]) -> None:
        super().__init__(f"validation failed for: {', '.join(errors)}")
        self.errors = errors

    def to_response(self) -> dict[str, Any]:
        return {"errors": {field: err.to_dict() for field, err in self.errors.items()}}


def length(min_length: int = 0, max_length: int | None = None) -> Rule:
    def check(value: str) -> bool:
        size = len(value)
        return size >= min_length and (max_length is None or size <= max_length)

    return Rule(check)


def numeric() -> Rule:
    return Rule(lambda value: _NUMERIC_RE.fullmatch(value) is not None)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


async def collect_errors(
    rules: RuleSet,
    values: Mapping[str, Any],
    *,
    location: str = "body",
) -> dict[str, FieldError]:
    errors: dict[str, FieldError] = {}
    for field, chain in rules:
        raw = values.get(field)
        value = _as_text(raw)
        for rule in chain:
            if not await rule.passes(value):
                errors[field] = FieldError(location=location, param=field, value=raw, msg=rule.message)
                break
    return errors


async def ensure_valid(
    rules: RuleSet,
    values: Mapping[str, Any],
    *,
    location: str = "body",
) -> None:
    errors = await collect_errors(rules, values, location=location)
    if errors:
        logger.info("validation_failed location=%s fields=%s", location, ",".join(errors))
        raise ValidationFailed(errors)

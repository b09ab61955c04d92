"""
Declarative request-body validation.

A handler lists the rules for the fields it cares about; `validate_fields`
evaluates every rule against the body and returns all field errors at once.
`validate_request` wraps that into a FastAPI dependency that yields the parsed
body or raises ValidationError (400).
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TypedDict

from fastapi import Request

from .errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

RULE_TYPES = {"string", "boolean", "number", "email"}

BODY_NOT_OBJECT = "Request body must be a JSON object"
VALIDATION_FAILED = "Validation failed"


class FieldError(TypedDict):
    field: str
    message: str


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class ValidationRule:
    """
    Constraints for one body field.

    - required: absent, null and '' are rejected
    - type: one of 'string', 'boolean', 'number', 'email'
    - min_length / max_length: only checked when the value is a string
    """

    field: str
    required: bool = False
    type: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None

    def __post_init__(self) -> None:
        if self.type is not None and self.type not in RULE_TYPES:
            raise ValueError(f"Unsupported rule type: {self.type}")


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


# PUBLIC_INTERFACE
def is_valid_email(value: str) -> bool:
    """Return True if value looks like an email address (case-insensitive)."""
    return EMAIL_PATTERN.match(value.lower()) is not None


def _type_error(rule: ValidationRule, value: Any) -> Optional[str]:
    if rule.type == "string" and not isinstance(value, str):
        return f"{rule.field} must be a string"
    if rule.type == "boolean" and not isinstance(value, bool):
        return f"{rule.field} must be a boolean"
    if rule.type == "number" and (isinstance(value, bool) or not isinstance(value, (int, float))):
        return f"{rule.field} must be a number"
    if rule.type == "email" and not (isinstance(value, str) and is_valid_email(value)):
        return f"{rule.field} must be a valid email address"
    return None


# PUBLIC_INTERFACE
def validate_fields(rules: Sequence[ValidationRule], body: Mapping[str, Any]) -> List[FieldError]:
    """
    Evaluate every rule against body and return the collected field errors.

    A required field that is missing yields exactly one 'is required' error and
    no further checks; an optional missing field is skipped entirely.
    """
    errors: List[FieldError] = []
    for rule in rules:
        value = body.get(rule.field)

        if _is_missing(value):
            if rule.required:
                errors.append({"field": rule.field, "message": f"{rule.field} is required"})
            continue

        if rule.type is not None:
            message = _type_error(rule, value)
            if message:
                errors.append({"field": rule.field, "message": message})

        if isinstance(value, str):
            if rule.min_length is not None and len(value) < rule.min_length:
                errors.append({
                    "field": rule.field,
                    "message": f"{rule.field} must be at least {rule.min_length} characters",
                })
            if rule.max_length is not None and len(value) > rule.max_length:
                errors.append({
                    "field": rule.field,
                    "message": f"{rule.field} must be no more than {rule.max_length} characters",
                })
    return errors


# PUBLIC_INTERFACE
def rules_for_present_fields(rules: Sequence[ValidationRule], body: Mapping[str, Any]) -> List[ValidationRule]:
    """
    Adapt a create-time rule set for partial updates: a required field is only
    required when its key appears in the body.
    """
    return [replace(rule, required=rule.required and rule.field in body) for rule in rules]


# PUBLIC_INTERFACE
async def read_json_body(request: Request) -> Dict[str, Any]:
    """
    Parse the request body as a JSON object. An empty body reads as {}.

    Raises:
        ValidationError if the body is not JSON or not an object.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError as exc:
        raise ValidationError(BODY_NOT_OBJECT) from exc
    if not isinstance(body, dict):
        raise ValidationError(BODY_NOT_OBJECT)
    return body


# PUBLIC_INTERFACE
def raise_for_errors(errors: List[FieldError]) -> None:
    """Raise ValidationError carrying the field errors, if there are any."""
    if errors:
        raise ValidationError(VALIDATION_FAILED, errors)


# PUBLIC_INTERFACE
def validate_request(rules: Sequence[ValidationRule]) -> Callable[..., Any]:
    """
    Return a FastAPI dependency that reads the JSON body, applies the rules and
    returns the body when it passes.

    Usage:
        @router.post("", ...)
        async def create(body: Dict[str, Any] = Depends(validate_request(RULES))): ...
    """
    frozen_rules = tuple(rules)

    async def _validated_body(request: Request) -> Dict[str, Any]:
        body = await read_json_body(request)
        raise_for_errors(validate_fields(frozen_rules, body))
        return body

    return _validated_body


# PUBLIC_INTERFACE
def find_invalid_fields(body: Mapping[str, Any], allowed: Sequence[str]) -> List[str]:
    """Return the keys of body that are not in allowed, in body order."""
    allowed_set = set(allowed)
    return [key for key in body if key not in allowed_set]


# PUBLIC_INTERFACE
def ensure_allowed_fields(body: Mapping[str, Any], allowed: Sequence[str]) -> None:
    """
    Reject a partial update that names fields outside the allow-list.

    Raises:
        ValidationError whose details list the invalid and the allowed fields.
    """
    invalid = find_invalid_fields(body, allowed)
    if invalid:
        raise ValidationError(
            f"Invalid fields: {', '.join(invalid)}. Allowed fields: {', '.join(allowed)}",
            {"invalidFields": invalid, "allowedFields": list(allowed)},
        )

from __future__ import annotations

from datetime import date
from typing import Any, Mapping

from pydantic import ValidationError

from grantvest.core.errors import (
    InvalidDatesError,
    InvalidGrantDataError,
    MissingParametersError,
)
from grantvest.schemas.grant import Grant


def _missing_required_fields(grant: Grant) -> list[str]:
    required = {
        "company": grant.company,
        "unit_type": grant.unit_type,
        "units": grant.units,
        "grant_date": grant.grant_date,
        "vesting_start": grant.vesting_start,
    }
    return [name for name, value in required.items() if value is None or value == ""]


def validate_calculation_inputs(grant: Grant | None, evaluation_date: date | None) -> None:
    """Reject a grant before any schedule is generated.

    Checks run in a fixed order and the first failing check raises; nothing
    is collected or repaired.
    """
    if grant is None:
        raise MissingParametersError("Grant data is required")
    grant_id = grant.grant_id
    if evaluation_date is None:
        raise MissingParametersError("Evaluation date is required", grant_id=grant_id)

    missing = _missing_required_fields(grant)
    if missing:
        raise InvalidGrantDataError(
            "Grant is missing required fields",
            grant_id=grant_id,
            context={"missing_fields": missing},
        )

    if grant.grant_date > grant.vesting_start:
        raise InvalidDatesError("Grant date cannot be after vesting start date", grant_id=grant_id)

    if grant.exercise_deadline is not None and grant.exercise_deadline < grant.vesting_start:
        raise InvalidDatesError("Exercise deadline cannot be before vesting start", grant_id=grant_id)

    if grant.units <= 0:
        raise InvalidGrantDataError("Shares must be positive", grant_id=grant_id)

    if grant.vesting_months <= 0:
        raise InvalidGrantDataError("Vesting period must be positive", grant_id=grant_id)

    if grant.cliff_months is not None and grant.cliff_months < 0:
        raise InvalidGrantDataError("Vesting cliff cannot be negative", grant_id=grant_id)

    if grant.is_option and grant.strike_price is None:
        raise InvalidGrantDataError("Stock options must have a strike price", grant_id=grant_id)

    if grant.is_rsu and grant.strike_price is not None:
        raise InvalidGrantDataError("RSUs should not have a strike price", grant_id=grant_id)


def _format_validation_errors(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc") or ())
        msg = error.get("msg") or "Invalid value"
        messages.append(f"{loc}: {msg}" if loc else str(msg))
    return messages


def grant_from_record(record: Mapping[str, Any]) -> Grant:
    """Build a grant from an already-decrypted record (camelCase or field names)."""
    try:
        return Grant.model_validate(dict(record))
    except ValidationError as exc:
        messages = _format_validation_errors(exc)
        raise InvalidGrantDataError(
            f"Invalid grant record: {'; '.join(messages)}",
            grant_id=record.get("id") if isinstance(record.get("id"), str) else None,
            context={"errors": messages},
        ) from exc

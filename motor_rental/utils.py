"""Utility functions for common operations across the application."""

import time
import uuid

from pydantic import BaseModel


def normalize_email(email: str) -> str:
    """Convert email to lowercase and strip whitespace."""
    return email.strip().lower()


def derive_username(full_name: str, max_length: int | None = None) -> str:
    """Username for accounts created through the profile form: lower-cased, spaces removed.

    Cut to max_length so it fits the username column.
    """
    username = full_name.lower().replace(" ", "")
    return username[:max_length] if max_length else username


def generate_booking_reference(prefix: str, now_ms: int | None = None) -> str:
    """Human-readable booking reference: prefix + (epoch milliseconds mod one million)."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{prefix}{now_ms % 1_000_000}"


def display_booking_id(prefix: str, order_id: uuid.UUID | str) -> str:
    """Short booking id shown in booking lists: prefix + first six characters of the row id."""
    return f"{prefix}{str(order_id)[:6]}"


def describe_validation_errors(errors: list[dict]) -> tuple[str, list[dict]]:
    """Turn pydantic/FastAPI validation errors into a headline and a per-field list.

    The headline names the first offending field: "Missing <field>" when it
    was absent, "Invalid <field> format" otherwise.
    """
    fields = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        # Drop the "body"/"query"/"path" source prefix unless it is all there is
        field = ".".join(loc[1:]) if len(loc) > 1 else ".".join(loc)
        fields.append({"field": field, "type": err.get("type"), "message": err.get("msg", "")})

    if not fields:
        return "Invalid request", []
    first = fields[0]
    if first["type"] == "missing":
        headline = f"Missing {first['field']}"
    else:
        headline = f"Invalid {first['field']} format"
    return headline, [{"field": f["field"], "message": f["message"]} for f in fields]


def build_update_values(changes: BaseModel) -> dict:
    """Map a partial-update schema to the column values an UPDATE should set.

    Only fields the caller supplied with a non-null value are kept. Keys come
    out in the schema's declaration order, so the generated statement is
    stable for a given set of supplied fields.
    """
    supplied = changes.model_dump(exclude_unset=True, exclude_none=True)
    return {name: supplied[name] for name in type(changes).model_fields if name in supplied}

"""Field descriptor contract for form extraction output.

The extraction relay passes the model's text through untouched. These models
document the shape callers should expect and let the relay log when the model
drifts from it.
"""

import json
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field, ValidationError


class FieldType(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    NUMBER = "number"
    BOOLEAN = "boolean"  # checkboxes
    SELECT = "select"  # dropdowns and radio buttons


class FieldDescriptor(BaseModel):
    """One input field found on a scanned form."""
    fieldName: str = Field(..., min_length=1, description="camelCase key, e.g. fullName")
    label: str = Field(..., min_length=1, description="Label as printed on the form")
    type: FieldType


@dataclass
class SchemaCheck:
    """Result of checking extraction output against the descriptor schema."""
    matches: bool
    field_count: int = 0
    violations: list[str] = field(default_factory=list)


def _unwrap_fields(parsed: object) -> object:
    # JSON mode forces a top-level object, so models often wrap the array
    if isinstance(parsed, dict) and len(parsed) == 1:
        (value,) = parsed.values()
        if isinstance(value, list):
            return value
    return parsed


def check_field_descriptors(raw_text: str) -> SchemaCheck:
    """Check whether raw model output is a list of valid field descriptors.

    Never raises: the caller decides what to do with a mismatch.
    """
    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as e:
        return SchemaCheck(False, violations=[f"invalid JSON: {e.msg}"])

    items = _unwrap_fields(parsed)
    if not isinstance(items, list):
        return SchemaCheck(False, violations=["expected a JSON array of field descriptors"])

    violations = []
    for index, item in enumerate(items):
        try:
            FieldDescriptor.model_validate(item)
        except ValidationError as e:
            for err in e.errors():
                loc = ".".join(str(part) for part in err["loc"]) or "item"
                violations.append(f"[{index}] {loc}: {err['msg']}")

    return SchemaCheck(not violations, field_count=len(items), violations=violations)

"""Applies the expense schemas and converts failures to structured field errors."""
from typing import Any, List, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

from errors import FieldError, ValidationFailed

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def field_errors(exc: ValidationError) -> List[FieldError]:
    """One ``{field, message}`` entry per offending field."""
    errors: List[FieldError] = []
    seen = set()
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"])
        if field in seen:
            continue
        seen.add(field)
        if error["type"] == "missing":
            message = f"{field[:1].upper()}{field[1:]} is required"
        else:
            message = error["msg"]
        errors.append(FieldError(field=field, message=message))
    return errors


def validate_fields(schema: Type[SchemaT], data: Any, source: str = "body") -> SchemaT:
    """
    Validates ``data`` against ``schema`` and returns the parsed model.

    All violations of the source are collected and raised together as a single
    ValidationFailed, so the request boundary and the store report the same shape.
    """
    if not isinstance(data, Mapping):
        raise ValidationFailed(
            [FieldError(field=source, message=f"Request {source} must be a JSON object")],
            source=source,
        )
    try:
        return schema.model_validate(dict(data))
    except ValidationError as exc:
        raise ValidationFailed(field_errors(exc), source=source) from exc

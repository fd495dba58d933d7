from typing import Any, Dict, Iterable, Mapping, Optional, Union

from pydantic import BaseModel

from safeops.core.exceptions import ValidationError


def as_values(data: Union[BaseModel, Mapping[str, Any]], allowed: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """Partial payload -> dict of the fields the caller actually set."""
    if isinstance(data, BaseModel):
        values = data.model_dump(exclude_unset=True)
    else:
        values = dict(data)
    if allowed is not None:
        unknown = sorted(set(values) - set(allowed))
        if unknown:
            raise ValidationError(f"fields not allowed here: {', '.join(unknown)}")
    return values


def first(rows) -> Optional[Dict[str, Any]]:
    return rows[0] if rows else None

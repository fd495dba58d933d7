from typing import ClassVar, Tuple
from pydantic import BaseModel, model_validator


class PartialUpdate(BaseModel):
    """PATCH body: omitted fields are left alone, but the columns named in
    ``not_null`` cannot be cleared with an explicit null."""

    not_null: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def refuse_nulls(self):
        cleared = [name for name in self.not_null if name in self.model_fields_set and getattr(self, name) is None]
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self

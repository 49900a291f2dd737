# swimdesk/repositories/mappers.py
"""
Translation between storage rows and entity shapes.

Most columns share the entity attribute name; the renames below are the
documented exceptions.
"""

from typing import Any, Dict, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.exceptions import ValidationException

E = TypeVar("E", bound=BaseModel)

# entity attribute -> column
USER_RENAMES = {"name": "full_name"}
CLASS_TYPE_RENAMES = {"price_single": "price"}
PURCHASE_RENAMES = {
    "price": "amount_paid",
    "credits": "credits_purchased",
    "date": "purchase_date",
}
PROGRESS_RENAMES = {"last_updated": "updated_at"}


def coerce_entity(entity_cls: Type[E], value: Any) -> E:
    """
    Validate ``value`` (an entity, another model, or a mapping) as ``entity_cls``.

    Raises:
        ValidationException: With the pydantic error list in ``details``
    """
    try:
        if isinstance(value, BaseModel):
            value = value.model_dump()
        return entity_cls.model_validate(value)
    except ValidationError as exc:
        raise ValidationException(
            f"Invalid {entity_cls.__name__}",
            code="VALIDATION_ERROR",
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc


class RowMapper:
    """Maps one entity class onto one table's columns."""

    def __init__(
        self,
        entity_cls: Type[E],
        renames: Mapping[str, str] | None = None,
        skip: tuple[str, ...] = (),
    ):
        self.entity_cls = entity_cls
        self.renames = dict(renames or {})
        self.skip = skip

    def to_columns(self, entity: BaseModel) -> Dict[str, Any]:
        values = entity.model_dump()
        return {
            self.renames.get(field, field): value
            for field, value in values.items()
            if field not in self.skip
        }

    def to_entity(self, row: Any, **extra: Any) -> Any:
        data = {
            field: getattr(row, self.renames.get(field, field))
            for field in self.entity_cls.model_fields
            if field not in self.skip and field not in extra
        }
        data.update(extra)
        return self.entity_cls.model_validate(data)

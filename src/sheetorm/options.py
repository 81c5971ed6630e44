"""Validated read options for find_many/find_first/count."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from sheetorm.errors import ConfigurationError


class FindOptions(BaseModel):
    """Options recognized by :meth:`sheetorm.model.Model.find_many`.

    ``include`` maps relation names to ``True`` or nested options used for the
    related table's own ``find_many``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    select: dict[str, bool] | None = None
    include: dict[str, Union[bool, FindOptions]] | None = None
    limit: int | None = Field(default=None, ge=0)
    skip: int | None = Field(default=None, ge=0)
    include_deleted: bool = False
    sort_by: str | None = None
    sort_order: Literal["asc", "desc"] = "asc"


FindOptions.model_rebuild()


def coerce_options(
    options: FindOptions | Mapping[str, Any] | None = None, **overrides: Any
) -> FindOptions:
    """Build FindOptions from a model, a mapping, and/or keyword overrides."""
    if options is None:
        base = FindOptions()
    elif isinstance(options, FindOptions):
        base = options
    else:
        base = _validate(dict(options))
    if not overrides:
        return base
    return _validate({**base.model_dump(exclude_unset=True), **overrides})


def _validate(raw: dict[str, Any]) -> FindOptions:
    try:
        return FindOptions.model_validate(raw)
    except PydanticValidationError as e:
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"invalid find options: {messages}") from e

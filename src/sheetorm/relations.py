"""Relation declarations between models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sheetorm.model import Model


class RelationKind(str, Enum):
    HAS_ONE = "hasOne"
    HAS_MANY = "hasMany"
    BELONGS_TO = "belongsTo"


@dataclass(frozen=True)
class Relation:
    """A directed relation from a source model to ``target``.

    Related rows are those whose ``foreign_key`` column on the target equals
    the parent's ``local_key`` column. The inverse direction has to be
    declared separately on the target model.
    """

    kind: RelationKind
    target: Model
    foreign_key: str
    local_key: str

    @property
    def many(self) -> bool:
        return self.kind is RelationKind.HAS_MANY

    @classmethod
    def has_one(cls, target: Model, *, foreign_key: str, local_key: str = "id") -> Relation:
        return cls(RelationKind.HAS_ONE, target, foreign_key, local_key)

    @classmethod
    def has_many(cls, target: Model, *, foreign_key: str, local_key: str = "id") -> Relation:
        return cls(RelationKind.HAS_MANY, target, foreign_key, local_key)

    @classmethod
    def belongs_to(cls, target: Model, *, local_key: str, foreign_key: str = "id") -> Relation:
        return cls(RelationKind.BELONGS_TO, target, foreign_key, local_key)


def bind_relations(bindings: dict[Model, dict[str, Relation]]) -> None:
    """Attach relations to several models in one pass.

    Construct every model first, then bind; this is how two tables that
    reference each other are wired up.
    """
    for model, relations in bindings.items():
        model.bind_relations(relations)

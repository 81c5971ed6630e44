"""Tests for schema normalization and eager validation."""

from __future__ import annotations

import pytest

from sheetorm import ConfigurationError, DataTypes, LogicalType, Schema
from sheetorm.schema import Column, normalize


class TestNormalize:
    def test_bare_marker(self):
        columns = normalize({"name": DataTypes.String})
        col = columns["name"]
        assert col.type is LogicalType.STRING
        assert not col.unique
        assert not col.auto_increment
        assert not col.has_default

    def test_full_definition(self):
        columns = normalize(
            {"id": {"type": DataTypes.Number, "auto_increment": True, "unique": True}}
        )
        assert columns["id"].auto_increment
        assert columns["id"].unique

    def test_marker_builders_carry_flags(self):
        columns = normalize(
            {
                "id": DataTypes.Number.auto_increment(),
                "created": DataTypes.Date.created_at(),
                "updated": DataTypes.Date.updated_at(),
                "deleted": DataTypes.Date.deleted_at(),
            }
        )
        assert columns["id"].auto_increment
        assert columns["created"].created_at
        assert columns["updated"].updated_at
        assert columns["deleted"].deleted_at

    def test_type_name_string(self):
        assert normalize({"flag": "boolean"})["flag"].type is LogicalType.BOOLEAN

    def test_key_order_preserved(self):
        schema = Schema({"b": DataTypes.String, "a": DataTypes.Number, "c": DataTypes.JSON})
        assert schema.column_names == ("b", "a", "c")

    def test_default_none_is_a_default(self):
        col = Column(type=LogicalType.STRING, default=None)
        assert col.has_default
        assert col.get_default() is None

    def test_mutable_default_copied(self):
        col = Column(type=LogicalType.JSON, default={"tags": []})
        first = col.get_default()
        first["tags"].append("x")
        assert col.get_default() == {"tags": []}

    def test_default_factory(self):
        col = Column(type=LogicalType.NUMBER, default_factory=lambda: 7)
        assert col.has_default
        assert col.get_default() == 7


class TestValidation:
    @pytest.mark.parametrize(
        "marker",
        [DataTypes.String, DataTypes.Boolean, DataTypes.JSON, DataTypes.Date, DataTypes.UUID],
    )
    def test_auto_increment_on_non_number_fails(self, marker):
        with pytest.raises(ConfigurationError) as exc:
            Schema({"id": {"type": marker, "auto_increment": True}})
        assert exc.value.column == "id"
        assert "auto_increment" in str(exc.value)

    def test_auto_increment_on_number_ok(self):
        schema = Schema({"id": {"type": DataTypes.Number, "auto_increment": True}})
        assert schema["id"].auto_increment

    def test_date_role_on_non_date_fails(self):
        with pytest.raises(ConfigurationError, match="deleted_at"):
            Schema({"removed": {"type": DataTypes.String, "deleted_at": True}})

    def test_unknown_key_fails(self):
        with pytest.raises(ConfigurationError):
            Schema({"id": {"type": DataTypes.Number, "autoincrement": True}})

    def test_unknown_type_fails(self):
        with pytest.raises(ConfigurationError):
            Schema({"id": {"type": "decimal"}})

    def test_default_and_factory_exclusive(self):
        with pytest.raises(ConfigurationError, match="mutually exclusive"):
            Schema({"n": {"type": DataTypes.Number, "default": 1, "default_factory": int}})

    def test_multiple_deleted_at_fails(self):
        with pytest.raises(ConfigurationError, match="multiple deleted_at"):
            Schema({"a": DataTypes.Date.deleted_at(), "b": DataTypes.Date.deleted_at()})

    def test_empty_schema_fails(self):
        with pytest.raises(ConfigurationError):
            Schema({})


class TestSchemaMapping:
    def test_role_lookups(self):
        schema = Schema(
            {
                "id": DataTypes.UUID,
                "email": {"type": DataTypes.String, "unique": True},
                "updated": DataTypes.Date.updated_at(),
                "deleted": DataTypes.Date.deleted_at(),
            }
        )
        assert schema.deleted_at_column == "deleted"
        assert schema.updated_at_column == "updated"
        assert schema.unique_columns == ("email",)

    def test_no_roles(self):
        schema = Schema({"name": DataTypes.String})
        assert schema.deleted_at_column is None
        assert schema.updated_at_column is None

    def test_immutable(self):
        schema = Schema({"name": DataTypes.String})
        with pytest.raises(TypeError):
            schema.columns["other"] = Column(type=LogicalType.STRING)  # type: ignore[index]

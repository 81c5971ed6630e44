"""Tests for relation declarations and inclusion."""

from __future__ import annotations

import pytest

from sheetorm import (
    ConfigurationError,
    DataTypes,
    FindOptions,
    Model,
    Relation,
    RelationKind,
    Schema,
    bind_relations,
)
from tests.conftest import USER_HEADER


@pytest.fixture
def linked(users, posts):
    bind_relations(
        {
            users: {
                "posts": Relation.has_many(posts, foreign_key="user_id"),
                "first_post": Relation.has_one(posts, foreign_key="user_id"),
            },
            posts: {"author": Relation.belongs_to(users, local_key="user_id")},
        }
    )
    return users, posts


def titles(rows):
    return [p["title"] for p in rows]


class TestRelationDeclarations:
    def test_builders(self, users, posts):
        rel = Relation.has_many(posts, foreign_key="user_id")
        assert rel.kind is RelationKind.HAS_MANY
        assert rel.local_key == "id"
        assert rel.many

        rel = Relation.belongs_to(users, local_key="user_id")
        assert rel.kind is RelationKind.BELONGS_TO
        assert rel.foreign_key == "id"
        assert not rel.many

    def test_kind_values(self):
        assert RelationKind.HAS_ONE.value == "hasOne"
        assert RelationKind("belongsTo") is RelationKind.BELONGS_TO

    def test_bound_once(self, linked):
        users, posts = linked
        with pytest.raises(ConfigurationError, match="already bound"):
            users.bind_relations({"other": Relation.has_many(posts, foreign_key="user_id")})

    def test_name_collides_with_column(self, users, posts):
        with pytest.raises(ConfigurationError) as exc:
            users.bind_relations({"name": Relation.has_many(posts, foreign_key="user_id")})
        assert exc.value.column == "name"

    def test_unknown_local_key(self, users, posts):
        with pytest.raises(ConfigurationError, match="local key"):
            users.bind_relations(
                {"posts": Relation.has_many(posts, foreign_key="user_id", local_key="uid")}
            )

    def test_unknown_foreign_key(self, users, posts):
        with pytest.raises(ConfigurationError, match="foreign key"):
            users.bind_relations({"posts": Relation.has_many(posts, foreign_key="owner")})

    def test_failed_bind_leaves_model_unbound(self, users, posts):
        with pytest.raises(ConfigurationError):
            users.bind_relations({"posts": Relation.has_many(posts, foreign_key="owner")})
        users.bind_relations({"posts": Relation.has_many(posts, foreign_key="user_id")})
        assert set(users.relations) == {"posts"}


class TestInclude:
    @pytest.mark.asyncio
    async def test_has_many(self, linked):
        users, _ = linked
        rows = await users.find_many(include={"posts": True}, sort_by="id")
        by_name = {r["name"]: r for r in rows}
        assert titles(by_name["Alice"]["posts"]) == ["Hello", "Second"]
        assert titles(by_name["Bob"]["posts"]) == ["Bob's post"]
        assert by_name["Charlie"]["posts"] == []

    @pytest.mark.asyncio
    async def test_one_bulk_fetch_per_relation(self, linked, store):
        users, _ = linked
        store.reset_calls()
        await users.find_many(include={"posts": True})
        post_reads = [c for c in store.calls_to("read_range") if c[1] == "Posts!A2:Z"]
        assert len(post_reads) == 1

    @pytest.mark.asyncio
    async def test_has_one(self, linked):
        users, _ = linked
        alice = await users.find_first({"name": "Alice"}, include={"first_post": True})
        assert alice["first_post"]["title"] == "Hello"
        charlie = await users.find_first({"name": "Charlie"}, include={"first_post": True})
        assert charlie["first_post"] is None

    @pytest.mark.asyncio
    async def test_belongs_to(self, linked):
        _, posts = linked
        rows = await posts.find_many(include={"author": True})
        assert [p["author"]["name"] for p in rows] == ["Alice", "Alice", "Bob"]

    @pytest.mark.asyncio
    async def test_belongs_to_soft_deleted_parent_hidden(self, linked, store):
        _, posts = linked
        await store.append_rows("Posts!A:A", [["104", "Orphan", "4", "false"]])
        orphan = await posts.find_first({"title": "Orphan"}, include={"author": True})
        assert orphan["author"] is None

    @pytest.mark.asyncio
    async def test_null_local_key_skips_relation(self, linked, store):
        _, posts = linked
        await store.append_rows("Posts!A:A", [["105", "Draft", "", "false"]])
        draft = await posts.find_first({"title": "Draft"}, include={"author": True})
        assert "author" not in draft

    @pytest.mark.asyncio
    async def test_nested_select_keeps_foreign_key(self, linked):
        users, _ = linked
        alice = await users.find_first(
            {"name": "Alice"}, include={"posts": FindOptions(select={"title": True})}
        )
        assert alice["posts"] == [
            {"title": "Hello", "user_id": 1},
            {"title": "Second", "user_id": 1},
        ]

    @pytest.mark.asyncio
    async def test_nested_options_as_mapping(self, linked):
        users, _ = linked
        alice = await users.find_first(
            {"name": "Alice"},
            include={"posts": {"sort_by": "id", "sort_order": "desc"}},
        )
        assert titles(alice["posts"]) == ["Second", "Hello"]

    @pytest.mark.asyncio
    async def test_select_applied_after_include(self, linked):
        users, _ = linked
        rows = await users.find_many(
            {"name": "Bob"}, include={"posts": True}, select={"name": True, "posts": True}
        )
        assert rows == [
            {
                "name": "Bob",
                "posts": [{"id": 103, "title": "Bob's post", "user_id": 2, "published": True}],
            }
        ]

    @pytest.mark.asyncio
    async def test_nested_include(self, linked):
        users, _ = linked
        alice = await users.find_first(
            {"name": "Alice"},
            include={"posts": FindOptions(include={"author": True})},
        )
        assert [p["author"]["email"] for p in alice["posts"]] == [
            "alice@example.com",
            "alice@example.com",
        ]

    @pytest.mark.asyncio
    async def test_false_entries_ignored(self, linked):
        users, _ = linked
        alice = await users.find_first({"name": "Alice"}, include={"posts": False})
        assert "posts" not in alice

    @pytest.mark.asyncio
    async def test_unknown_relation_skipped(self, linked):
        users, _ = linked
        rows = await users.find_many(include={"comments": True, "posts": True})
        assert [r["name"] for r in rows] == ["Alice", "Bob", "Charlie"]
        assert all("comments" not in r for r in rows)
        assert all("posts" in r for r in rows)

    @pytest.mark.asyncio
    async def test_attached_rows_are_copies(self, linked):
        users, _ = linked
        rows = await users.find_many(include={"posts": True, "first_post": True})
        alice = rows[0]
        alice["first_post"]["title"] = "changed"
        assert alice["posts"][0]["title"] == "Hello"


class TestMutualDeclaration:
    @pytest.mark.asyncio
    async def test_models_reference_each_other(self, client, store):
        await store.create_table("Teams")
        await store.overwrite_range("Teams!A1", [["id", "name", "captain_id"], ["1", "Red", "2"]])
        teams = Model(
            client,
            "Teams",
            Schema(
                {
                    "id": DataTypes.Number,
                    "name": DataTypes.String,
                    "captain_id": DataTypes.Number,
                }
            ),
        )
        members = Model(
            client,
            "Users",
            Schema({name: DataTypes.String for name in USER_HEADER} | {"id": DataTypes.Number}),
        )
        bind_relations(
            {
                teams: {"captain": Relation.belongs_to(members, local_key="captain_id")},
                members: {"captain_of": Relation.has_one(teams, foreign_key="captain_id")},
            }
        )
        red = await teams.find_first(include={"captain": True})
        assert red["captain"]["name"] == "Bob"
        bob = await members.find_first({"name": "Bob"}, include={"captain_of": True})
        assert bob["captain_of"]["name"] == "Red"

"""Example 01: Basic Usage - sheetorm Fundamentals.

This example demonstrates the fundamental operations:
- Declaring schemas with DataTypes markers and column options
- Binding models to tables through a shared SheetClient
- Creating rows with auto-increment ids and defaults
- Filtering, sorting and paginating with find_many
- Updating, soft-deleting and hard-deleting rows

It runs against the in-process MemoryStore; swap in GoogleSheetsStore to
talk to a real spreadsheet.
"""

import asyncio

from sheetorm import DataTypes, MemoryStore, Model, Schema, SheetClient, SheetOrmConfig, col

# Step 1: Declare Schemas
# Column order is the header order written when a table is created.
USERS = Schema(
    {
        "id": DataTypes.Number.auto_increment(),
        "name": DataTypes.String,
        "age": DataTypes.Number,
        "email": {"type": DataTypes.String, "unique": True},
        "created_at": DataTypes.Date.created_at(),
        "deleted_at": DataTypes.Date.deleted_at(),
    }
)

NOTES = Schema(
    {
        "id": DataTypes.CUID,
        "body": DataTypes.String,
        "pinned": {"type": DataTypes.Boolean, "default": False},
    }
)


async def main():
    """Run the basic usage example."""
    print("=" * 80)
    print("SHEETORM BASIC USAGE EXAMPLE")
    print("=" * 80)

    # Step 2: Connect
    # Models that should see each other's writes share one client.
    client = SheetClient(MemoryStore(), SheetOrmConfig(cache_ttl_ms=5000))
    users = Model(client, "Users", USERS)
    notes = Model(client, "Notes", NOTES)

    # Step 3: Create
    # Missing tables are created on first use, with their header row.
    print("\nAdding users...")
    await users.create_many(
        [
            {"name": "Alice", "age": 32, "email": "alice@example.com"},
            {"name": "Bob", "age": 27, "email": "bob@example.com"},
            {"name": "Charlie", "age": 45, "email": "charlie@example.com"},
        ]
    )
    note = await notes.create({"body": "Remember the milk"})
    print(f"✓ Users: {await users.count()}  Note id: {note['id']}")

    # Step 4: Query
    print("\n" + "=" * 80)
    print("QUERYING")
    print("=" * 80)

    over_30 = await users.find_many({"age": {"gt": 30}}, sort_by="age", sort_order="desc")
    print("\nOver 30, oldest first:")
    for row in over_30:
        print(f"  - {row['name']} ({row['age']})")

    a_names = await users.find_many(col("name").ilike("a%") | (col("age") < 30))
    print(f"\nStarts with 'a' or under 30: {[r['name'] for r in a_names]}")

    page = await users.find_many(sort_by="name", skip=1, limit=1, select={"name": True})
    print(f"Second page of one: {page}")

    # Step 5: Mutate
    print("\n" + "=" * 80)
    print("MUTATING")
    print("=" * 80)

    await users.update({"name": "Bob"}, {"age": 28})
    await users.upsert(
        where={"email": "dana@example.com"},
        update={"age": 30},
        create={"name": "Dana", "age": 30, "email": "dana@example.com"},
    )
    removed = await users.delete({"name": "Charlie"})
    print(f"\nSoft-deleted {removed} user(s)")
    print(f"Visible: {[r['name'] for r in await users.find_many()]}")
    print(f"All: {[r['name'] for r in await users.find_many(include_deleted=True)]}")

    purged = await users.delete({"name": "Charlie"}, force=True)
    print(f"Purged {purged} user(s); remaining rows: {await users.count(include_deleted=True)}")

    print("\n" + "=" * 80)
    print("✓ Example complete")
    print("=" * 80)


if __name__ == "__main__":
    asyncio.run(main())

"""Example 04: Relations - hasMany, hasOne and belongsTo.

This example demonstrates:
- Declaring relations after every model is constructed
- Including related rows with one bulk read per relation
- Nested include options with their own select and sort
- Selecting parent columns while keeping included relations
"""

import asyncio

from sheetorm import (
    DataTypes,
    FindOptions,
    MemoryStore,
    Model,
    Relation,
    Schema,
    SheetClient,
    bind_relations,
)

AUTHORS = Schema(
    {
        "id": DataTypes.Number.auto_increment(),
        "name": DataTypes.String,
    }
)

BOOKS = Schema(
    {
        "id": DataTypes.Number.auto_increment(),
        "title": DataTypes.String,
        "author_id": DataTypes.Number,
        "year": DataTypes.Number,
    }
)


async def main():
    """Run the relations example."""
    print("=" * 80)
    print("SHEETORM RELATIONS EXAMPLE")
    print("=" * 80)

    client = SheetClient(MemoryStore())
    authors = Model(client, "Authors", AUTHORS)
    books = Model(client, "Books", BOOKS)

    # Models reference each other, so bind once both exist
    bind_relations(
        {
            authors: {
                "books": Relation.has_many(books, foreign_key="author_id"),
                "first_book": Relation.has_one(books, foreign_key="author_id"),
            },
            books: {"author": Relation.belongs_to(authors, local_key="author_id")},
        }
    )

    ursula = await authors.create({"name": "Ursula K. Le Guin"})
    octavia = await authors.create({"name": "Octavia E. Butler"})
    await books.create_many(
        [
            {"title": "A Wizard of Earthsea", "author_id": ursula["id"], "year": 1968},
            {"title": "The Dispossessed", "author_id": ursula["id"], "year": 1974},
            {"title": "Kindred", "author_id": octavia["id"], "year": 1979},
        ]
    )

    print("\nAuthors with their books (newest first):")
    rows = await authors.find_many(
        include={"books": FindOptions(select={"title": True}, sort_by="year", sort_order="desc")},
        select={"name": True, "books": True},
    )
    for row in rows:
        print(f"  {row['name']}: {[b['title'] for b in row['books']]}")

    print("\nBooks with their author:")
    for book in await books.find_many(include={"author": True}, sort_by="year"):
        print(f"  {book['year']} {book['title']} by {book['author']['name']}")

    first = await authors.find_first({"name": {"like": "Octavia%"}}, include={"first_book": True})
    print(f"\nOctavia's first listed book: {first['first_book']['title']}")

    print("\n✓ Example complete")


if __name__ == "__main__":
    asyncio.run(main())

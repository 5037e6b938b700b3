"""
Book model for the School Library MCP Server.

Books are exposed as resources:
- library://books/list
- library://books/{book_id}

and created or deleted through the catalog tools. A book's only mutable
attribute is ``is_available``, which the lending commands flip on borrow and
return.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Book(BaseModel):
    """
    Represents a book in the library catalog.

    ``is_available`` is false exactly while an open borrow record references
    the book.
    """

    id: int = Field(
        ...,
        description="Unique identifier allocated when the book is created",
        ge=1,
        examples=[1, 42],
    )

    title: str = Field(
        ...,
        description="The title of the book",
        min_length=1,
        max_length=500,
        examples=["Pride and Prejudice", "To Kill a Mockingbird"],
    )

    author: str = Field(
        ...,
        description="Name of the book's author",
        min_length=1,
        max_length=200,
        examples=["Jane Austen", "Harper Lee"],
    )

    cover_image: str = Field(
        default="",
        description="URL of the cover image",
        max_length=1000,
        examples=["https://picsum.photos/id/20/300/400"],
    )

    is_available: bool = Field(
        default=True,
        description="Whether the book is on the shelf (not currently on loan)",
    )

    @field_validator("title", "author")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Strip surrounding whitespace and reject blank values."""
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be blank")
        return v

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 2,
                "title": "Pride and Prejudice",
                "author": "Jane Austen",
                "cover_image": "https://picsum.photos/id/20/300/400",
                "is_available": True,
            }
        },
    )


class BookCandidate(BaseModel):
    """
    A book proposed for creation, typically produced by a text importer.

    Candidates carry no id; the store allocates one when the book is added.
    """

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=200)
    cover_image: str = Field(
        default="",
        max_length=1000,
        validation_alias=AliasChoices("cover_image", "coverImage"),
    )

    @field_validator("title", "author")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be blank")
        return v

    @field_validator("cover_image")
    @classmethod
    def strip_cover(cls, v: str) -> str:
        return v.strip()

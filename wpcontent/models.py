"""WordPress REST API resource and query models.

Resource models mirror the wp/v2 JSON shapes and keep unknown fields, so
a plugin adding keys never breaks validation. Query models validate the
caller's filters and serialize them to the wire format the API expects.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# ── Resources ────────────────────────────────────────────────────────


class RenderedText(BaseModel):
    model_config = ConfigDict(extra="allow")

    rendered: str = ""


class Author(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str = ""
    slug: str = ""
    description: str = ""
    link: str = ""
    avatar_urls: dict[str, str] = Field(default_factory=dict)


class Media(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    date: str = ""
    slug: str = ""
    type: str = ""
    link: str = ""
    title: RenderedText = Field(default_factory=RenderedText)
    author: int = 0
    caption: RenderedText = Field(default_factory=RenderedText)
    alt_text: str = ""
    media_type: str = ""
    mime_type: str = ""
    source_url: str = ""
    media_details: dict[str, Any] = Field(default_factory=dict)


class Category(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    count: int = 0
    description: str = ""
    link: str = ""
    name: str = ""
    slug: str = ""
    taxonomy: str = "category"
    parent: int = 0


class Tag(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    count: int = 0
    description: str = ""
    link: str = ""
    name: str = ""
    slug: str = ""
    taxonomy: str = "post_tag"


class Post(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int
    date: str = ""
    modified: str = ""
    slug: str = ""
    status: str = "publish"
    type: str = "post"
    link: str = ""
    title: RenderedText = Field(default_factory=RenderedText)
    content: RenderedText = Field(default_factory=RenderedText)
    excerpt: RenderedText = Field(default_factory=RenderedText)
    author: int = 0
    featured_media: int = 0
    categories: list[int] = Field(default_factory=list)
    tags: list[int] = Field(default_factory=list)
    embedded: dict[str, Any] | None = Field(default=None, alias="_embedded")

    @property
    def embedded_author(self) -> Author | None:
        authors = (self.embedded or {}).get("author") or []
        return Author.model_validate(authors[0]) if authors else None

    @property
    def featured_image(self) -> Media | None:
        media = (self.embedded or {}).get("wp:featuredmedia") or []
        return Media.model_validate(media[0]) if media else None

    @property
    def embedded_terms(self) -> list[dict[str, Any]]:
        """Flattened ``wp:term`` groups (categories and tags)."""
        groups = (self.embedded or {}).get("wp:term") or []
        return [term for group in groups for term in group]


class PostsPage(BaseModel):
    """One page of a post listing plus pagination metadata."""

    items: list[Post] = Field(default_factory=list)
    total_pages: int = 1
    total_items: int = 0
    current_page: int = 1
    per_page: int = 10

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.current_page > 1


# ── Queries ──────────────────────────────────────────────────────────

PostOrderBy = Literal["date", "id", "include", "title", "slug", "modified", "relevance"]
TermOrderBy = Literal["id", "include", "name", "slug", "term_group", "description", "count"]
Order = Literal["asc", "desc"]


class _Query(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    def to_params(self) -> dict[str, Any]:
        """Wire-named parameters with unset values dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PostQuery(_Query):
    page: int = Field(1, ge=1)
    per_page: int = Field(10, ge=1, le=100)
    search: str | None = None
    author: int | None = Field(None, ge=1)
    categories: list[int] | None = None
    tags: list[int] | None = None
    exclude: list[int] | None = None
    slug: str | None = None
    status: Literal["publish", "draft", "private"] = "publish"
    orderby: PostOrderBy | None = None
    order: Order | None = None
    embed: bool = Field(True, alias="_embed")


class _TermQuery(_Query):
    page: int | None = Field(None, ge=1)
    per_page: int = Field(100, ge=1, le=100)
    search: str | None = None
    exclude: list[int] | None = None
    include: list[int] | None = None
    orderby: TermOrderBy = "name"
    order: Order = "asc"
    hide_empty: bool = True
    post: int | None = Field(None, ge=1)
    slug: str | None = None


class CategoryQuery(_TermQuery):
    parent: int | None = Field(None, ge=0)


class TagQuery(_TermQuery):
    pass

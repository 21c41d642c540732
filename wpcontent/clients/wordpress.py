"""WordPress REST API client: posts, categories, tags, authors, media.

Used by:
- Blog page loaders (listing, detail, category and tag pages)
- The cms_check command (connectivity report)

Every read goes through ``_get_cached_or_fetch``: arguments are validated
before any I/O, the request is serialized canonically, and successful
results are cached under a TTL class matching how volatile the resource
is (listings < single post < static taxonomy/author/media data).
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Mapping, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from wpcontent.clients.base import APIResponse, Sleep, WordPressTransport, build_endpoint
from wpcontent.clients.errors import InvalidResponse, NotFoundError, ValidationError
from wpcontent.config import WordPressSettings, load_settings
from wpcontent.models import (
    Author,
    Category,
    CategoryQuery,
    Media,
    Post,
    PostQuery,
    PostsPage,
    Tag,
    TagQuery,
)
from wpcontent.utils.cache import ResponseCache

log = logging.getLogger("wpcontent.client")

Q = TypeVar("Q", bound=BaseModel)
R = TypeVar("R")

AUTHORS_PARAMS = {"per_page": 100, "orderby": "name", "order": "asc"}


def _require_id(value: Any, name: str, path: str, code: str) -> int:
    """Positive integer ids only; bools are not ids."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"Valid {name} ID is required", field=f"{name}_id", endpoint=path, code=code)
    return value


def _require_text(value: Any, field: str, path: str, code: str, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required", field=field, endpoint=path, code=code)
    return value.strip()


def _detached(value: R) -> R:
    """Deep copy handed to callers; cached entries are never shared."""
    if isinstance(value, BaseModel):
        return value.model_copy(deep=True)
    return copy.deepcopy(value)


def _coerce_query(model: type[Q], query: Q | Mapping[str, Any] | None, path: str, **overrides: Any) -> Q:
    """Validate a query model or mapping, applying ``overrides`` on top."""
    if isinstance(query, model):
        raw = query.model_dump(by_alias=False)
    elif query is None:
        raw = {}
    elif isinstance(query, Mapping):
        raw = dict(query)
    else:
        raise ValidationError(f"Query must be a {model.__name__} or mapping", field="query", endpoint=path)
    raw.update(overrides)
    try:
        return model.model_validate(raw)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "query"
        raise ValidationError(f"Invalid {field}: {first.get('msg', 'invalid value')}", field=field, endpoint=path) from e


class WordPressClient:
    """Cached, validated access to a WordPress wp/v2 API.

    Usage:
        async with WordPressClient(WordPressSettings(base_url=...)) as wp:
            page = await wp.get_posts({"page": 2})
            post = await wp.get_post_by_slug("hello-world")
    """

    def __init__(
        self,
        settings: WordPressSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        cache: ResponseCache | None = None,
        sleep: Sleep | None = None,
    ):
        self.settings = settings or WordPressSettings()
        extra: dict[str, Any] = {}
        if sleep is not None:
            extra["sleep"] = sleep
        self._http = WordPressTransport(
            base_url=self.settings.base_url,
            timeout=self.settings.timeout,
            retry_attempts=self.settings.retry_attempts,
            retry_delay=self.settings.retry_delay,
            headers=self.settings.headers,
            transport=transport,
            **extra,
        )
        self.cache = cache or ResponseCache(max_size=self.settings.cache_max_size)

    @property
    def cache_enabled(self) -> bool:
        return self.settings.enable_cache

    async def close(self) -> None:
        """Stop the cache sweeper and release the HTTP connection pool."""
        await self.cache.stop_sweeper()
        await self._http.close()

    async def __aenter__(self) -> WordPressClient:
        if self.cache_enabled:
            self.cache.start_sweeper(self.settings.sweep_interval)
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ── Core fetch path ──────────────────────────────────────────────

    async def _get_cached_or_fetch(
        self,
        path: str,
        params: Mapping[str, Any] | None,
        ttl: float,
        parse: Callable[[APIResponse], R],
    ) -> R:
        endpoint = build_endpoint(path, params)

        if self.cache_enabled:
            cached = self.cache.get(endpoint)
            if cached is not None:
                log.debug("Cache hit: %s", endpoint)
                return _detached(cached)
            self.cache.start_sweeper(self.settings.sweep_interval)

        response = await self._http.get(endpoint)
        try:
            result = parse(response)
        except PydanticValidationError as e:
            raise InvalidResponse(f"Unexpected response shape: {e.error_count()} error(s)", endpoint) from e

        if self.cache_enabled:
            self.cache.set(endpoint, result, ttl)
            return _detached(result)
        return result

    @staticmethod
    def _one(model: type[R]) -> Callable[[APIResponse], R]:
        def parse(response: APIResponse) -> R:
            if not isinstance(response.data, dict):
                raise InvalidResponse("Expected a JSON object", response.endpoint)
            return model.model_validate(response.data)  # type: ignore[attr-defined]
        return parse

    @staticmethod
    def _many(model: type[R]) -> Callable[[APIResponse], list[R]]:
        def parse(response: APIResponse) -> list[R]:
            if not isinstance(response.data, list):
                raise InvalidResponse("Expected a JSON array", response.endpoint)
            return [model.model_validate(item) for item in response.data]  # type: ignore[attr-defined]
        return parse

    # ── Posts ────────────────────────────────────────────────────────

    async def get_posts(self, query: PostQuery | Mapping[str, Any] | None = None) -> PostsPage:
        """Fetch one page of posts.

        Defaults: status=publish, _embed=true, page=1, per_page=10. Totals
        come from the X-WP-Total / X-WP-TotalPages headers.
        """
        q = _coerce_query(PostQuery, query, "/posts")

        def parse(response: APIResponse) -> PostsPage:
            if not isinstance(response.data, list):
                raise InvalidResponse("Expected a JSON array", response.endpoint)
            return PostsPage(
                items=[Post.model_validate(item) for item in response.data],
                total_pages=response.header_int("X-WP-TotalPages", 1),
                total_items=response.header_int("X-WP-Total", 0),
                current_page=q.page,
                per_page=q.per_page,
            )

        return await self._get_cached_or_fetch("/posts", q.to_params(), self.settings.cache_ttl.posts, parse)

    async def get_post(self, post_id: int) -> Post:
        _require_id(post_id, "post", "/posts", "INVALID_POST_ID")
        return await self._get_cached_or_fetch(
            f"/posts/{post_id}", {"_embed": True}, self.settings.cache_ttl.post, self._one(Post)
        )

    async def get_post_by_slug(self, slug: str) -> Post:
        """Single post by slug. An empty result raises NotFoundError (404)."""
        slug = _require_text(slug, "slug", "/posts", "MISSING_SLUG", "Post slug")
        query = PostQuery(slug=slug)
        page = await self.get_posts(query)
        if not page.items:
            raise NotFoundError(
                f"Post not found: {slug}",
                build_endpoint("/posts", query.to_params()),
                code="POST_NOT_FOUND",
            )
        return page.items[0]

    async def search_posts(self, text: str, query: PostQuery | Mapping[str, Any] | None = None) -> PostsPage:
        text = _require_text(text, "search", "/posts", "MISSING_SEARCH_QUERY", "Search query")
        return await self.get_posts(_coerce_query(PostQuery, query, "/posts", search=text))

    async def get_posts_by_category(
        self, category_id: int, query: PostQuery | Mapping[str, Any] | None = None
    ) -> PostsPage:
        _require_id(category_id, "category", "/posts", "INVALID_CATEGORY_ID")
        return await self.get_posts(_coerce_query(PostQuery, query, "/posts", categories=[category_id]))

    async def get_posts_by_tag(self, tag_id: int, query: PostQuery | Mapping[str, Any] | None = None) -> PostsPage:
        _require_id(tag_id, "tag", "/posts", "INVALID_TAG_ID")
        return await self.get_posts(_coerce_query(PostQuery, query, "/posts", tags=[tag_id]))

    # ── Taxonomies ───────────────────────────────────────────────────

    async def get_categories(self, query: CategoryQuery | Mapping[str, Any] | None = None) -> list[Category]:
        q = _coerce_query(CategoryQuery, query, "/categories")
        return await self._get_cached_or_fetch(
            "/categories", q.to_params(), self.settings.cache_ttl.static, self._many(Category)
        )

    async def get_tags(self, query: TagQuery | Mapping[str, Any] | None = None) -> list[Tag]:
        q = _coerce_query(TagQuery, query, "/tags")
        return await self._get_cached_or_fetch("/tags", q.to_params(), self.settings.cache_ttl.static, self._many(Tag))

    # ── Authors and media ────────────────────────────────────────────

    async def get_authors(self) -> list[Author]:
        return await self._get_cached_or_fetch(
            "/users", AUTHORS_PARAMS, self.settings.cache_ttl.static, self._many(Author)
        )

    async def get_author(self, author_id: int) -> Author:
        _require_id(author_id, "author", "/users", "INVALID_AUTHOR_ID")
        return await self._get_cached_or_fetch(
            f"/users/{author_id}", None, self.settings.cache_ttl.static, self._one(Author)
        )

    async def get_media(self, media_id: int) -> Media:
        _require_id(media_id, "media", "/media", "INVALID_MEDIA_ID")
        return await self._get_cached_or_fetch(
            f"/media/{media_id}", None, self.settings.cache_ttl.static, self._one(Media)
        )

    # ── Maintenance ──────────────────────────────────────────────────

    def clear_cache(self) -> None:
        self.cache.clear()

    def invalidate(self, path: str, params: Mapping[str, Any] | None = None) -> bool:
        """Drop one cached request. ``params`` must be the wire parameters."""
        return self.cache.delete(build_endpoint(path, params))

    async def health_check(self) -> bool:
        """Fetch a single post to verify connectivity. Never raises."""
        try:
            await self._http.get(build_endpoint("/posts", {"per_page": 1}))
            return True
        except Exception as e:
            log.warning("WordPress health check failed (%s): %s", type(e).__name__, e)
            return False


# Shared instance for callers that do not inject their own client.
_default_client: WordPressClient | None = None


def get_wordpress_client() -> WordPressClient:
    """Get the shared client, built from load_settings() on first use."""
    global _default_client
    if _default_client is None:
        _default_client = WordPressClient(load_settings())
    return _default_client


async def close_wordpress_client() -> None:
    global _default_client
    client, _default_client = _default_client, None
    if client is not None:
        await client.close()

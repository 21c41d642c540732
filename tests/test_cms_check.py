"""Tests for the cms_check command report."""

from __future__ import annotations

import httpx
import pytest
from unittest.mock import patch

from wpcontent.clients.wordpress import WordPressClient
from wpcontent.commands.cms_check import check_cms
from wpcontent.config import WordPressSettings
from tests.mocks.mock_wordpress import (
    BASE_URL,
    CATEGORY,
    POSTS,
    POSTS_HEADERS,
    FakeCMS,
    SleepRecorder,
    connect_error,
    respond,
)

SETTINGS = WordPressSettings(base_url=BASE_URL, retry_attempts=0)


def _client_factory(cms: FakeCMS):
    def factory(settings):
        return WordPressClient(settings, transport=httpx.MockTransport(cms), sleep=SleepRecorder())
    return factory


class TestCmsCheck:

    @pytest.mark.asyncio
    async def test_healthy_report(self):
        cms = FakeCMS({"/posts": respond(POSTS, headers=POSTS_HEADERS), "/categories": respond([CATEGORY])})
        with patch("wpcontent.commands.cms_check.WordPressClient", side_effect=_client_factory(cms)):
            report = await check_cms(SETTINGS, posts=3)

        assert report["status"] == "OK"
        assert report["healthy"] is True
        assert report["total_posts"] == 3
        assert [p["slug"] for p in report["latest"]] == ["first-post", "second-post", "third-post"]
        assert report["categories"] == 1
        assert report["cache_entries"] == 2
        assert report["errors"] == []

    @pytest.mark.asyncio
    async def test_down_report(self):
        cms = FakeCMS({"/posts": connect_error})
        with patch("wpcontent.commands.cms_check.WordPressClient", side_effect=_client_factory(cms)):
            report = await check_cms(SETTINGS)

        assert report["status"] == "DOWN"
        assert report["healthy"] is False
        assert "latest" not in report

    @pytest.mark.asyncio
    async def test_degraded_when_categories_fail(self):
        cms = FakeCMS({"/posts": respond(POSTS, headers=POSTS_HEADERS)})
        with patch("wpcontent.commands.cms_check.WordPressClient", side_effect=_client_factory(cms)):
            report = await check_cms(SETTINGS)

        assert report["status"] == "DEGRADED"
        assert report["errors"] == ["categories: The content you are looking for could not be found."]

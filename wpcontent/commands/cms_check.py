"""CMS check: CLI entry point.

Connectivity and content report for the configured WordPress API:
1. Health check (single-post fetch)
2. Latest post titles (through the retry orchestrator)
3. Category count

Usage:
    python3 -m wpcontent.commands.cms_check [--posts 5] [--config config/wordpress.yaml]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from wpcontent.clients.errors import describe_error
from wpcontent.clients.wordpress import WordPressClient
from wpcontent.config import WordPressSettings, load_settings
from wpcontent.utils.retry import run_with_retry


async def check_cms(settings: WordPressSettings, posts: int = 5) -> dict[str, Any]:
    """Run the checks and return a JSON-serializable report."""
    report: dict[str, Any] = {"base_url": settings.base_url, "status": "OK", "errors": []}

    async with WordPressClient(settings) as wp:
        report["healthy"] = await wp.health_check()
        if not report["healthy"]:
            report["status"] = "DOWN"
            return report

        latest = await run_with_retry(lambda: wp.get_posts({"per_page": posts}), max_attempts=2)
        if latest.ok:
            report["total_posts"] = latest.data.total_items
            report["latest"] = [
                {"id": p.id, "slug": p.slug, "title": p.title.rendered} for p in latest.data.items
            ]
        else:
            report["status"] = "DEGRADED"
            report["errors"].append(f"posts: {describe_error(latest.error)}")

        categories = await run_with_retry(wp.get_categories, max_attempts=2)
        if categories.ok:
            report["categories"] = len(categories.data)
        else:
            report["status"] = "DEGRADED"
            report["errors"].append(f"categories: {describe_error(categories.error)}")

        report["cache_entries"] = len(wp.cache)

    return report


def main() -> None:
    parser = argparse.ArgumentParser(description="CMS check: WordPress API connectivity report")
    parser.add_argument("--posts", type=int, default=5, help="Number of latest posts to list")
    parser.add_argument("--config", type=Path, default=None, help="Path to wordpress.yaml")
    args = parser.parse_args()

    settings = load_settings(args.config)
    result = asyncio.run(check_cms(settings, posts=args.posts))
    print(json.dumps(result, indent=2))

    sys.exit(0 if result["status"] == "OK" else 1)


if __name__ == "__main__":
    main()

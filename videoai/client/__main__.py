"""
Watch generation progress from the command line

    python -m videoai.client http://localhost:8000
"""

import argparse
import asyncio
from typing import Dict

import aiohttp

from ..utils.logger import setup_logger
from .progress_client import ProgressClient, VideoListCache

logger = setup_logger()


def _ws_url(base_url: str) -> str:
    base_url = base_url.rstrip("/")
    if base_url.startswith("https://"):
        return "wss://" + base_url[len("https://"):] + "/ws/progress"
    if base_url.startswith("http://"):
        return "ws://" + base_url[len("http://"):] + "/ws/progress"
    return base_url + "/ws/progress"


async def watch(base_url: str, headers: Dict[str, str]):
    async with aiohttp.ClientSession() as session:
        videos = VideoListCache(base_url, session, headers=headers)

        async def refresh():
            videos.invalidate()
            for video in await videos.get():
                logger.info(f"{video['id']}  {video['status']:<10}  {video['title']}")

        client = ProgressClient(
            _ws_url(base_url),
            on_invalidate=refresh,
            session=session,
            headers=headers,
        )
        try:
            await client.run()
        finally:
            await client.close()


def main():
    parser = argparse.ArgumentParser(description="Follow VideoAI generation progress")
    parser.add_argument("base_url", nargs="?", default="http://localhost:8000")
    parser.add_argument("--api-key", default="", help="Server API key, if enabled")
    parser.add_argument("--user", default="", help="Owner id sent as X-User-Id")
    args = parser.parse_args()

    headers = {}
    if args.api_key:
        headers["X-API-Key"] = args.api_key
    if args.user:
        headers["X-User-Id"] = args.user

    try:
        asyncio.run(watch(args.base_url, headers))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()

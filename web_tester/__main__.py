import asyncio
import argparse
import logging
import sys

from . import config
from .action_registry import dispatch, format_action_menu
from .browser_session import BrowserSession


async def _run(url: str | None, headless: bool) -> None:
    async with BrowserSession(headless=headless) as session:
        if url:
            print(await dispatch(session, "visitUrl", url))
        print("Available actions:\n" + format_action_menu())
        print("Enter '<action> <payload>' per line, empty line or EOF to quit.")
        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            line = line.strip()
            if not line:
                break
            name, _, payload = line.partition(" ")
            print(await dispatch(session, name, payload))
            if name == "closeBrowser":
                break


def main() -> None:
    parser = argparse.ArgumentParser(description="Drive a browser session through web-tester actions")
    parser.add_argument("--url", help="URL to visit before reading actions")
    parser.add_argument("--headless", action="store_true", default=config.HEADLESS, help="Run browser in headless mode")
    parser.add_argument("--debug", action="store_true", default=config.DEBUG, help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    asyncio.run(_run(args.url, args.headless))


if __name__ == "__main__":
    main()

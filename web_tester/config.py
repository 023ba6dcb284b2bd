"""
Web Tester configuration.
Values come from the environment (a local .env file is honoured).
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
VISION_MODEL = os.getenv("WEB_TESTER_VISION_MODEL", "gpt-4o")
DEFAULT_VISION_PROMPT = (
    "What is shown in this screenshot? if there is text, always extract it. "
    "be as comprehensive as possible."
)

HEADLESS = _env_flag("WEB_TESTER_HEADLESS")
DEBUG = _env_flag("DEBUG")

# Timeouts in milliseconds; 0 disables the timeout.
NAVIGATION_TIMEOUT_MS = int(os.getenv("WEB_TESTER_NAVIGATION_TIMEOUT_MS", "0"))
CLICK_TIMEOUT_MS = 5000
POST_ACTION_IDLE_TIMEOUT_MS = 6000
LOAD_STATE_TIMEOUT_MS = 10000

NEARBY_TEXT_LIMIT = 300

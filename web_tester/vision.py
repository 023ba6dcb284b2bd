from __future__ import annotations

"""Screenshot analysis through an OpenAI vision-capable chat model."""

import logging
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError

from . import config

logger = logging.getLogger(__name__)


class ScreenshotAnalyzer:
    """Sends a base64 screenshot plus a prompt and returns the model's text answer.

    Failures come back as an error string; the vision endpoint is a
    recoverable dependency and never crashes the calling action.
    """

    def __init__(self, api_key: Optional[str] = None, model: str = config.VISION_MODEL,
                 client: Any = None) -> None:
        self._api_key = api_key if api_key is not None else config.OPENAI_API_KEY
        self._model = model
        self._client = client
        self.token_usage: int = 0

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def analyze(self, base64_image: str, prompt: str) -> str:
        if self._client is None and not self._api_key:
            return "Error analyzing screenshot: missing OPENAI_API_KEY environment variable."
        try:
            resp = await self._get_client().chat.completions.create(
                model=self._model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:image/png;base64,{base64_image}"},
                            },
                        ],
                    }
                ],
            )
            self.token_usage += resp.usage.total_tokens if resp and resp.usage else 0
            return (resp.choices[0].message.content or "").strip()
        except OpenAIError as e:
            logger.warning("Vision request failed: %s", e)
            return f"Error analyzing screenshot: {e}"

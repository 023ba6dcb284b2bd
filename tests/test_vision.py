from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError

from web_tester.vision import ScreenshotAnalyzer


def _client(content="  A login page with two fields. ", tokens=42):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
            usage=SimpleNamespace(total_tokens=tokens),
        )
    )
    return client


@pytest.mark.asyncio
async def test_analyze_sends_image_and_prompt():
    client = _client()
    analyzer = ScreenshotAnalyzer(api_key="sk-test", model="gpt-4o", client=client)

    answer = await analyzer.analyze("aGVsbG8=", "What is on screen?")

    assert answer == "A login page with two fields."
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "gpt-4o"
    text_part, image_part = kwargs["messages"][0]["content"]
    assert text_part == {"type": "text", "text": "What is on screen?"}
    assert image_part["image_url"]["url"] == "data:image/png;base64,aGVsbG8="
    assert analyzer.token_usage == 42


@pytest.mark.asyncio
async def test_missing_api_key_is_reported():
    analyzer = ScreenshotAnalyzer(api_key="")

    answer = await analyzer.analyze("aGVsbG8=", "Describe")

    assert answer == "Error analyzing screenshot: missing OPENAI_API_KEY environment variable."


@pytest.mark.asyncio
async def test_endpoint_failure_becomes_error_string():
    client = _client()
    client.chat.completions.create.side_effect = OpenAIError("rate limited")

    answer = await ScreenshotAnalyzer(api_key="sk-test", client=client).analyze("aGVsbG8=", "Describe")

    assert answer == "Error analyzing screenshot: rate limited"

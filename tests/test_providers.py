from __future__ import annotations

import base64
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from labelscan.ocr.exceptions import EmptyResponseError, InvalidImageFormatError, JSONNotFoundError
from labelscan.ocr.prompt import EXTRACTION_PROMPT
from labelscan.ocr.providers.claude_ocr import ClaudeOCRProvider
from labelscan.ocr.providers.gemini_ocr import GeminiOCRProvider
from labelscan.ocr.providers.openai_ocr import OpenAIOCRProvider
from tests.support import COMPLETE_REPLY, SAMPLE_IMAGE

PNG_BYTES = b"\x89PNG fake image bytes"
PNG_IMAGE = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("utf-8")


def openai_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestOpenAIProvider(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.provider = OpenAIOCRProvider({"api_key": "sk-test", "model": "gpt-4o-mini", "max_tokens": 512})

    @patch("labelscan.ocr.providers.openai_ocr.acompletion", new_callable=AsyncMock)
    async def test_recognize(self, mock_acompletion) -> None:
        mock_acompletion.return_value = openai_response(f"```json\n{COMPLETE_REPLY}\n```")

        fields = await self.provider.recognize(SAMPLE_IMAGE)

        self.assertEqual(fields.well, "PM-3 ST1")
        kwargs = mock_acompletion.await_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-4o-mini")
        self.assertEqual(kwargs["max_tokens"], 512)
        self.assertEqual(kwargs["api_key"], "sk-test")
        content = kwargs["messages"][0]["content"]
        self.assertEqual(content[0]["image_url"], {"url": SAMPLE_IMAGE, "detail": "high"})
        self.assertEqual(content[1]["text"], EXTRACTION_PROMPT)

    @patch("labelscan.ocr.providers.openai_ocr.acompletion", new_callable=AsyncMock)
    async def test_empty_content(self, mock_acompletion) -> None:
        mock_acompletion.return_value = openai_response(None)
        with self.assertRaisesRegex(EmptyResponseError, "openai"):
            await self.provider.recognize(SAMPLE_IMAGE)

    @patch("labelscan.ocr.providers.openai_ocr.acompletion", new_callable=AsyncMock)
    async def test_no_choices(self, mock_acompletion) -> None:
        mock_acompletion.return_value = SimpleNamespace(choices=[])
        with self.assertRaises(EmptyResponseError):
            await self.provider.recognize(SAMPLE_IMAGE)

    @patch("labelscan.ocr.providers.openai_ocr.acompletion", new_callable=AsyncMock)
    async def test_transport_error_propagates(self, mock_acompletion) -> None:
        mock_acompletion.side_effect = RuntimeError("429 rate limit")
        with self.assertRaisesRegex(RuntimeError, "429 rate limit"):
            await self.provider.recognize(SAMPLE_IMAGE)


class TestClaudeProvider(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.provider = ClaudeOCRProvider({"api_key": "sk-ant-test", "model": "claude-3-5-haiku-20241022"})
        self.provider.client = MagicMock()
        self.create = AsyncMock()
        self.provider.client.messages.create = self.create

    async def test_recognize_sends_split_image(self) -> None:
        self.create.return_value = SimpleNamespace(
            content=[SimpleNamespace(type="text", text=COMPLETE_REPLY)], stop_reason="end_turn"
        )

        fields = await self.provider.recognize(PNG_IMAGE)

        self.assertEqual(fields.box_code, "040.BB.020")
        kwargs = self.create.await_args.kwargs
        self.assertEqual(kwargs["model"], "claude-3-5-haiku-20241022")
        self.assertEqual(kwargs["max_tokens"], 1024)
        image_block, text_block = kwargs["messages"][0]["content"]
        self.assertEqual(image_block["source"], {
            "type": "base64",
            "media_type": "image/png",
            "data": base64.b64encode(PNG_BYTES).decode("utf-8"),
        })
        self.assertEqual(text_block, {"type": "text", "text": EXTRACTION_PROMPT})

    async def test_invalid_image_is_rejected_before_request(self) -> None:
        with self.assertRaisesRegex(InvalidImageFormatError, "Invalid image format"):
            await self.provider.recognize("not-a-data-uri")
        self.create.assert_not_awaited()

    async def test_no_text_block(self) -> None:
        self.create.return_value = SimpleNamespace(content=[], stop_reason="max_tokens")
        with self.assertRaisesRegex(EmptyResponseError, "claude"):
            await self.provider.recognize(PNG_IMAGE)

    async def test_reply_without_json(self) -> None:
        self.create.return_value = SimpleNamespace(
            content=[SimpleNamespace(type="text", text="The label is too blurry.")], stop_reason="end_turn"
        )
        with self.assertRaises(JSONNotFoundError):
            await self.provider.recognize(PNG_IMAGE)


class TestGeminiProvider(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.provider = GeminiOCRProvider({"api_key": "gm-test", "model": "gemini-2.0-flash"})
        self.provider.client = MagicMock()
        self.generate = AsyncMock()
        self.provider.client.aio.models.generate_content = self.generate

    async def test_recognize_sends_inline_bytes(self) -> None:
        self.generate.return_value = SimpleNamespace(text=COMPLETE_REPLY)

        fields = await self.provider.recognize(PNG_IMAGE)

        self.assertEqual(fields.depth_from, 2480)
        kwargs = self.generate.await_args.kwargs
        self.assertEqual(kwargs["model"], "gemini-2.0-flash")
        self.assertEqual(kwargs["config"].max_output_tokens, 1024)
        image_part, prompt = kwargs["contents"]
        self.assertEqual(image_part.inline_data.data, PNG_BYTES)
        self.assertEqual(image_part.inline_data.mime_type, "image/png")
        self.assertEqual(prompt, EXTRACTION_PROMPT)

    async def test_invalid_base64(self) -> None:
        with self.assertRaises(InvalidImageFormatError):
            await self.provider.recognize("data:image/png;base64,@@not base64@@")
        self.generate.assert_not_awaited()

    async def test_empty_text(self) -> None:
        self.generate.return_value = SimpleNamespace(text=None)
        with self.assertRaisesRegex(EmptyResponseError, "gemini"):
            await self.provider.recognize(PNG_IMAGE)


if __name__ == "__main__":
    unittest.main()

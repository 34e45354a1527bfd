from typing import Optional

from anthropic import AsyncAnthropic
from loguru import logger

from labelscan.ocr.base import BaseOCRProvider, split_data_uri
from labelscan.ocr.prompt import EXTRACTION_PROMPT


class ClaudeOCRProvider(BaseOCRProvider):
    """
    Anthropic Claude implementation using the official SDK

    Claude takes the image as a base64 source block, so the media type is
    split off the data URI here.
    """

    name = "claude"
    credential = "ANTHROPIC_API_KEY"
    default_model = "claude-3-5-haiku-20241022"

    def __init__(self, config: dict):
        super().__init__(config)
        self.client = AsyncAnthropic(api_key=self.api_key)

    async def request_text(self, image: str) -> Optional[str]:
        media_type, data = split_data_uri(image)

        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {"type": "base64", "media_type": media_type, "data": data},
                        },
                        {"type": "text", "text": EXTRACTION_PROMPT},
                    ],
                }
            ],
        )

        for block in response.content:
            if block.type == "text":
                return block.text

        logger.warning(f"[{self.log_tag}] No text block in response (stop_reason={response.stop_reason})")
        return None

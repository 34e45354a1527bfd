from typing import Optional

from litellm import acompletion

from labelscan.ocr.base import BaseOCRProvider
from labelscan.ocr.prompt import EXTRACTION_PROMPT


class OpenAIOCRProvider(BaseOCRProvider):
    """
    OpenAI vision implementation routed through litellm

    The data URI is passed through untouched as an image_url part,
    OpenAI accepts it as-is.
    """

    name = "openai"
    credential = "OPENAI_API_KEY"
    default_model = "gpt-4o-mini"

    async def request_text(self, image: str) -> Optional[str]:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": image, "detail": "high"}},
                    {"type": "text", "text": EXTRACTION_PROMPT},
                ],
            }
        ]
        response = await acompletion(
            model=self.model,
            messages=messages,
            max_tokens=self.max_tokens,
            api_key=self.api_key,
        )

        if not response.choices:
            return None
        return response.choices[0].message.content

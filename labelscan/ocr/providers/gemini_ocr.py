import base64
import binascii
from typing import Optional

from google import genai
from google.genai import types

from labelscan.ocr.base import BaseOCRProvider, split_data_uri
from labelscan.ocr.exceptions import InvalidImageFormatError
from labelscan.ocr.prompt import EXTRACTION_PROMPT


class GeminiOCRProvider(BaseOCRProvider):
    """
    Google Gemini implementation using the google-genai SDK

    Gemini takes raw image bytes plus a MIME type as an inline part.
    """

    name = "gemini"
    credential = "GEMINI_API_KEY"
    default_model = "gemini-2.0-flash"

    def __init__(self, config: dict):
        super().__init__(config)
        self.client = genai.Client(api_key=self.api_key)

    async def request_text(self, image: str) -> Optional[str]:
        mime_type, data = split_data_uri(image)
        try:
            image_bytes = base64.b64decode(data, validate=True)
        except binascii.Error as e:
            raise InvalidImageFormatError(f"Invalid image format: {e}") from e

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[
                types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                EXTRACTION_PROMPT,
            ],
            config=types.GenerateContentConfig(max_output_tokens=self.max_tokens),
        )
        return response.text

import asyncio
import json

from labelscan.config import Settings
from labelscan.ocr.base import BaseOCRProvider

SAMPLE_IMAGE = "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQ=="

COMPLETE_REPLY = json.dumps({
    "well": "PM-3 ST1",
    "company": "Petronas Carigali",
    "depthFrom": 2480,
    "depthTo": 2490,
    "boxCode": "040.BB.020",
})


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment and any .env file"""
    values = dict(
        OCR_PROVIDER=None,
        GEMINI_API_KEY=None,
        OPENAI_API_KEY=None,
        ANTHROPIC_API_KEY=None,
        OCR_TIMEOUT=None,
        GOOGLE_SERVICE_ACCOUNT_EMAIL=None,
        GOOGLE_PRIVATE_KEY=None,
        GOOGLE_SHEETS_ID=None,
        TELEGRAM_BOT_TOKEN=None,
        TELEGRAM_ACCESS_CODE=None,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


class StaticProvider(BaseOCRProvider):
    """Provider that answers with a fixed reply, after an optional delay"""

    name = "static"
    credential = "STATIC_API_KEY"

    def __init__(self, reply=None, delay: float = 0, error: Exception = None):
        super().__init__({"api_key": "test-key", "model": "static-model"})
        self.reply = reply
        self.delay = delay
        self.error = error
        self.images = []

    async def request_text(self, image):
        self.images.append(image)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply

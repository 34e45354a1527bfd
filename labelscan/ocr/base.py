import asyncio
import json
import re
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from loguru import logger
from pydantic import ValidationError

from labelscan.models import ExtractedFields
from labelscan.ocr.exceptions import (
    CredentialNotConfiguredError,
    EmptyResponseError,
    InvalidImageFormatError,
    InvalidJSONError,
    JSONNotFoundError,
    ProviderTimeoutError,
)

# data:<media type>;base64,<payload>
DATA_URI_PATTERN = re.compile(r"^data:([^;,]+);base64,(.+)$")


def split_data_uri(image: str) -> Tuple[str, str]:
    """
    Split an inline image into (media type, base64 payload)

    Raises:
        InvalidImageFormatError: If the string is not a base64 data URI
    """
    match = DATA_URI_PATTERN.match(image) if isinstance(image, str) else None
    if not match:
        raise InvalidImageFormatError()
    return match.group(1), match.group(2)


def find_json_object(text: str) -> Optional[str]:
    """
    Locate the first top-level {...} span by brace matching.

    Braces inside JSON strings are ignored. Returns None when there is no
    opening brace or the object is never closed.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    return None


def decode_extracted_fields(text: str) -> ExtractedFields:
    """Turn a backend's free-text answer into ExtractedFields or fail"""
    span = find_json_object(text)
    if span is None:
        raise JSONNotFoundError()

    try:
        data = json.loads(span)
    except json.JSONDecodeError as e:
        raise InvalidJSONError(f"Invalid JSON in response: {e.msg}") from e

    try:
        return ExtractedFields.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise InvalidJSONError(f"Response does not match the label schema: {fields}") from e


class BaseOCRProvider(ABC):
    """Abstract base class for all vision providers"""

    name: str = "unknown"
    credential: str = ""
    default_model: str = ""

    def __init__(self, config: dict):
        """
        Initialize provider with configuration

        Args:
            config: Dictionary with "api_key", "model" and "max_tokens"

        Raises:
            CredentialNotConfiguredError: If "api_key" is missing or blank
        """
        self.config = config
        self.provider_name = self.__class__.__name__

        api_key = config.get("api_key")
        if not api_key or not api_key.strip():
            raise CredentialNotConfiguredError(self.credential)

        self.api_key = api_key
        self.model = config.get("model") or self.default_model
        self.max_tokens = config.get("max_tokens", 1024)

    @property
    def log_tag(self) -> str:
        return f"{self.name.upper()} OCR"

    @abstractmethod
    async def request_text(self, image: str) -> Optional[str]:
        """
        Send the image and EXTRACTION_PROMPT to the backend, single attempt

        Args:
            image: Inline data URI ("data:image/jpeg;base64,...")

        Returns:
            The backend's raw text answer, None if it sent no text
        """
        pass

    async def recognize(self, image: str) -> ExtractedFields:
        """
        Read one label image.

        Raises:
            InvalidImageFormatError, EmptyResponseError, JSONNotFoundError,
            InvalidJSONError, or the backend SDK's own exception unchanged
        """
        logger.info(f"[{self.log_tag}] Starting extraction with {self.model} ({len(image)} chars)")

        text = await self.request_text(image)
        if not text or not text.strip():
            logger.warning(f"[{self.log_tag}] Empty response")
            raise EmptyResponseError(f"No text response from {self.name}")

        logger.info(f"[{self.log_tag}] Received {len(text)} chars")
        return decode_extracted_fields(text)


async def recognize_with_timeout(
    provider: BaseOCRProvider, image: str, timeout: Optional[float] = None
) -> ExtractedFields:
    """Run provider.recognize, failing with ProviderTimeoutError after `timeout` seconds"""
    if not timeout:
        return await provider.recognize(image)

    try:
        return await asyncio.wait_for(provider.recognize(image), timeout)
    except asyncio.TimeoutError as e:
        raise ProviderTimeoutError(f"{provider.name} did not respond within {timeout:g}s") from e

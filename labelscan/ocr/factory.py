from typing import Dict, Optional, Type

from labelscan.config import Settings, settings as default_settings
from labelscan.ocr.base import BaseOCRProvider
from labelscan.ocr.exceptions import CredentialNotConfiguredError
from labelscan.ocr.providers.claude_ocr import ClaudeOCRProvider
from labelscan.ocr.providers.gemini_ocr import GeminiOCRProvider
from labelscan.ocr.providers.openai_ocr import OpenAIOCRProvider

# Fixed enumeration order, comparison results are reported in this order
PROVIDER_ORDER = ("gemini", "openai", "claude")

PROVIDER_CLASSES: Dict[str, Type[BaseOCRProvider]] = {
    "gemini": GeminiOCRProvider,
    "openai": OpenAIOCRProvider,
    "claude": ClaudeOCRProvider,
}

# Approximate USD per label image
COST_PER_IMAGE: Dict[str, float] = {
    "gemini": 0.00005,  # ~$0.50 per 10k images
    "openai": 0.00035,  # ~$3.50 per 10k images
    "claude": 0.00105,  # ~$10.50 per 10k images
}


def credential_name(provider_name: str) -> str:
    return PROVIDER_CLASSES[provider_name].credential


def get_credential(provider_name: str, settings: Settings) -> Optional[str]:
    value = getattr(settings, credential_name(provider_name), None)
    if value and value.strip():
        return value
    return None


def is_configured(provider_name: str, settings: Settings) -> bool:
    return get_credential(provider_name, settings) is not None


class OCRProviderFactory:
    """
    Factory for creating provider instances from Settings

    Every call builds a fresh provider, credentials are checked before
    anything is constructed.
    """

    @classmethod
    def provider_config(cls, provider_name: str, settings: Settings) -> dict:
        """Build the config dict a provider constructor expects"""
        models = {
            "gemini": settings.GEMINI_MODEL,
            "openai": settings.OPENAI_MODEL,
            "claude": settings.CLAUDE_MODEL,
        }
        return {
            "api_key": get_credential(provider_name, settings),
            "model": models[provider_name],
            "max_tokens": settings.OCR_MAX_TOKENS,
        }

    @classmethod
    def create_provider(cls, provider_name: str, settings: Optional[Settings] = None) -> BaseOCRProvider:
        """
        Create a provider instance

        Args:
            provider_name: One of PROVIDER_ORDER
            settings: Settings to read credentials from (global settings by default)

        Raises:
            ValueError: Unknown provider name
            CredentialNotConfiguredError: Provider's API key is not set
        """
        settings = settings or default_settings
        provider_class = PROVIDER_CLASSES.get(provider_name)
        if provider_class is None:
            raise ValueError(f"Unknown OCR provider '{provider_name}'")

        if not is_configured(provider_name, settings):
            raise CredentialNotConfiguredError(provider_class.credential)

        return provider_class(cls.provider_config(provider_name, settings))

from typing import Optional

from loguru import logger

from labelscan.config import Settings, settings as default_settings
from labelscan.ocr.base import BaseOCRProvider
from labelscan.ocr.factory import PROVIDER_ORDER, OCRProviderFactory, is_configured

DEFAULT_PROVIDER = "claude"


def _normalize(provider_name: Optional[str]) -> Optional[str]:
    if not provider_name or not provider_name.strip():
        return None
    return provider_name.strip().lower()


def resolve_provider_name(requested: Optional[str] = None, settings: Optional[Settings] = None) -> str:
    """
    Decide which provider to use, without touching the network

    Order: explicit request, OCR_PROVIDER, DEFAULT_PROVIDER if its key is
    set, the first provider (in PROVIDER_ORDER) whose key is set, and
    finally DEFAULT_PROVIDER. Unknown names are skipped with a warning.
    """
    settings = settings or default_settings

    for source, candidate in (("request", requested), ("OCR_PROVIDER", settings.OCR_PROVIDER)):
        name = _normalize(candidate)
        if name is None:
            continue
        if name in PROVIDER_ORDER:
            return name
        logger.warning(f"⚠️  Unknown OCR provider '{candidate}' from {source}, ignoring")

    if is_configured(DEFAULT_PROVIDER, settings):
        return DEFAULT_PROVIDER

    for name in PROVIDER_ORDER:
        if is_configured(name, settings):
            return name

    return DEFAULT_PROVIDER


def get_ocr_provider(requested: Optional[str] = None, settings: Optional[Settings] = None) -> BaseOCRProvider:
    """
    Select and build the provider for a single extraction

    Raises:
        CredentialNotConfiguredError: The resolved provider has no API key
    """
    settings = settings or default_settings
    provider_name = resolve_provider_name(requested, settings)
    logger.info(f"[OCR] Using provider '{provider_name}'")
    return OCRProviderFactory.create_provider(provider_name, settings)

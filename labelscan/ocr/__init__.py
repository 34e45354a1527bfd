"""
OCR abstraction layer for sample labels

Interchangeable vision providers (Gemini, OpenAI, Claude) behind one
`recognize(image) -> ExtractedFields` contract.

Usage:
    from labelscan.ocr import get_ocr_provider, compare_all

    # Single provider (explicit, OCR_PROVIDER, or first configured)
    provider = get_ocr_provider("gemini")
    fields = await provider.recognize("data:image/jpeg;base64,...")

    # Every provider side by side
    report = await compare_all("data:image/jpeg;base64,...")
    print(report.summary.successful)
"""

from labelscan.ocr.base import BaseOCRProvider, recognize_with_timeout, split_data_uri
from labelscan.ocr.compare import ComparisonReport, ProviderOutcome, compare_all
from labelscan.ocr.config import get_ocr_provider, resolve_provider_name
from labelscan.ocr.exceptions import (
    CredentialNotConfiguredError,
    EmptyResponseError,
    InvalidImageFormatError,
    InvalidJSONError,
    JSONNotFoundError,
    OCRError,
    ProviderTimeoutError,
)
from labelscan.ocr.factory import PROVIDER_ORDER, OCRProviderFactory
from labelscan.ocr.prompt import EXTRACTION_PROMPT

__all__ = [
    'BaseOCRProvider',
    'ComparisonReport',
    'ProviderOutcome',
    'compare_all',
    'get_ocr_provider',
    'resolve_provider_name',
    'recognize_with_timeout',
    'split_data_uri',
    'OCRProviderFactory',
    'PROVIDER_ORDER',
    'EXTRACTION_PROMPT',
    'OCRError',
    'CredentialNotConfiguredError',
    'EmptyResponseError',
    'InvalidImageFormatError',
    'InvalidJSONError',
    'JSONNotFoundError',
    'ProviderTimeoutError',
]

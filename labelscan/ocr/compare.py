"""
Side-by-side provider comparison

Runs every known provider against the same image, concurrently, and
reports one outcome per provider in PROVIDER_ORDER. A provider that is
not configured, times out or fails only affects its own entry.
"""

import asyncio
import time
from typing import Callable, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from labelscan.config import Settings, settings as default_settings
from labelscan.models import ExtractedFields
from labelscan.ocr.base import BaseOCRProvider, recognize_with_timeout
from labelscan.ocr.exceptions import InvalidImageFormatError
from labelscan.ocr.factory import (
    COST_PER_IMAGE,
    PROVIDER_ORDER,
    OCRProviderFactory,
    credential_name,
    is_configured,
)

ProviderBuilder = Callable[[str, Settings], BaseOCRProvider]


class ProviderOutcome(BaseModel):
    """Result of one provider's attempt within a comparison run"""

    provider: str
    success: bool
    data: Optional[ExtractedFields] = None
    error: Optional[str] = None
    response_time_ms: int = Field(default=0, alias="responseTime")
    estimated_cost: float = Field(default=0.0, alias="estimatedCost")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class ComparisonSummary(BaseModel):
    total_providers: int = Field(alias="totalProviders")
    successful: int
    failed: int
    total_estimated_cost: float = Field(alias="totalEstimatedCost")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class ComparisonReport(BaseModel):
    results: List[ProviderOutcome]

    model_config = ConfigDict(frozen=True)

    @property
    def summary(self) -> ComparisonSummary:
        successful = sum(1 for r in self.results if r.success)
        return ComparisonSummary(
            total_providers=len(self.results),
            successful=successful,
            failed=len(self.results) - successful,
            total_estimated_cost=round(sum(r.estimated_cost for r in self.results), 6),
        )

    def to_dict(self) -> Dict:
        return {
            "results": [r.model_dump(by_alias=True) for r in self.results],
            "summary": self.summary.model_dump(by_alias=True),
        }


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


async def _run_provider(
    provider_name: str, image: str, settings: Settings, build: ProviderBuilder
) -> ProviderOutcome:
    if not is_configured(provider_name, settings):
        return ProviderOutcome(
            provider=provider_name,
            success=False,
            error=f"{credential_name(provider_name)} not configured",
        )

    start = time.perf_counter()
    try:
        provider = build(provider_name, settings)
        data = await recognize_with_timeout(provider, image, settings.OCR_TIMEOUT)
    except Exception as e:
        elapsed = _elapsed_ms(start)
        logger.warning(f"[OCR COMPARE] {provider_name} failed after {elapsed}ms: {type(e).__name__}: {e}")
        return ProviderOutcome(
            provider=provider_name,
            success=False,
            error=str(e) or type(e).__name__,
            response_time_ms=elapsed,
        )

    elapsed = _elapsed_ms(start)
    logger.info(f"[OCR COMPARE] {provider_name} succeeded in {elapsed}ms")
    return ProviderOutcome(
        provider=provider_name,
        success=True,
        data=data,
        response_time_ms=elapsed,
        estimated_cost=COST_PER_IMAGE[provider_name],
    )


async def compare_all(
    image: str,
    settings: Optional[Settings] = None,
    build: Optional[ProviderBuilder] = None,
) -> ComparisonReport:
    """
    Run every provider against one image

    Args:
        image: Inline data URI of the label photo
        settings: Credentials and timeouts (global settings by default)
        build: Provider constructor, OCRProviderFactory.create_provider by default

    Raises:
        InvalidImageFormatError: Only when `image` itself is missing
    """
    if not isinstance(image, str) or not image.strip():
        raise InvalidImageFormatError("Image is required")

    settings = settings or default_settings
    build = build or OCRProviderFactory.create_provider

    outcomes = await asyncio.gather(
        *(_run_provider(name, image, settings, build) for name in PROVIDER_ORDER)
    )
    report = ComparisonReport(results=list(outcomes))

    summary = report.summary
    logger.info(
        f"[OCR COMPARE] {summary.successful}/{summary.total_providers} providers succeeded, "
        f"{summary.failed} failed"
    )
    return report

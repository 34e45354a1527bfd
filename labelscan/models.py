import math
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Number = Union[int, float]


def parse_number(text: str) -> Optional[Number]:
    """
    Parse a label number, dropping comma grouping

    "2,480" -> 2480, "2480.5" -> 2480.5, "abc" -> None
    """
    cleaned = text.replace(",", "").strip()
    if not cleaned:
        return None
    try:
        if "." in cleaned:
            return float(cleaned)
        return int(cleaned)
    except ValueError:
        return None


def _is_number(value: Any) -> bool:
    """Real, finite number; bools and NaN/infinity do not count"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


class ExtractedFields(BaseModel):
    """
    Canonical label fields produced by every extraction path.

    Text fields use "" for "not found", depths use None.
    """

    well: str
    company: str
    depth_from: Optional[Number] = Field(alias="depthFrom")
    depth_to: Optional[Number] = Field(alias="depthTo")
    box_code: str = Field(alias="boxCode")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("well", "company", "box_code", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if _is_number(value):
            return str(value)
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("depth_from", "depth_to", mode="before")
    @classmethod
    def _coerce_depth(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("depth must be a number, not a boolean")
        if isinstance(value, str):
            if not value.strip():
                return None
            number = parse_number(value)
            if number is None:
                raise ValueError(f"depth {value!r} is not a number")
            return number
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("depth must be a finite number")
        return value

    def to_dict(self) -> Dict:
        """Convert to the camelCase shape used on the wire"""
        return self.model_dump(by_alias=True)


class RecordValidationError(ValueError):
    """Raised when a sample cannot be persisted as-is"""


class SampleRecord(BaseModel):
    """A complete sample row, ready for the spreadsheet"""

    well: str
    company: str = ""
    depth_from: Number = Field(alias="depthFrom")
    depth_to: Number = Field(alias="depthTo")
    box_code: str = Field(default="", alias="boxCode")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


def validate_record(payload: Dict[str, Any]) -> SampleRecord:
    """
    Check a submitted sample before it is saved.

    Raises:
        RecordValidationError: with the first problem found
    """
    well = payload.get("well")
    if not well or not isinstance(well, str) or not well.strip():
        raise RecordValidationError("Well name is required")

    depth_from = payload.get("depthFrom")
    depth_to = payload.get("depthTo")
    if not _is_number(depth_from) or not _is_number(depth_to):
        raise RecordValidationError("Depth From and Depth To must be numbers")

    if depth_from > depth_to:
        raise RecordValidationError("Depth From must be less than or equal to Depth To")

    return SampleRecord(
        well=well.strip(),
        company=str(payload.get("company") or "").strip(),
        depth_from=depth_from,
        depth_to=depth_to,
        box_code=str(payload.get("boxCode") or "").strip(),
    )

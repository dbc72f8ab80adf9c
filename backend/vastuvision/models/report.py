"""
Compliance Report Models

Schema of the structured report returned by the analysis collaborator.
Validation aliases accept the camelCase keys the model is prompted to emit;
serialization uses the snake_case field names.
"""

from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class ReportLanguage(str, Enum):
    """Languages the report content can be written in."""
    ENGLISH = "English"
    HINDI = "Hindi (हिन्दी)"
    TAMIL = "Tamil (தமிழ்)"
    TELUGU = "Telugu (తెలుగు)"
    KANNADA = "Kannada (ಕನ್ನಡ)"
    MALAYALAM = "Malayalam (മലയാളം)"
    MARATHI = "Marathi (मराठी)"
    GUJARATI = "Gujarati (ગુજરાતી)"
    BENGALI = "Bengali (বাংলা)"
    PUNJABI = "Punjabi (ਪੰਜਾਬੀ)"


class AssessmentStatus(str, Enum):
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class SpaceAssessment(BaseModel):
    """Verdict for one tagged space."""

    space_category: str = Field(..., validation_alias=AliasChoices("roomType", "space_category"))
    status: AssessmentStatus
    observation: str
    remedy: Optional[str] = None
    floor_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("floorName", "floor_name"))

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            if value == "bad":
                return AssessmentStatus.POOR
        return value


class ComplianceReport(BaseModel):
    """Whole-building compliance report."""

    overall_score: float = Field(..., ge=0, le=100, validation_alias=AliasChoices("overallScore", "overall_score"))
    summary: str
    per_space: List[SpaceAssessment] = Field(default_factory=list, validation_alias=AliasChoices("roomAnalysis", "per_space"))
    general_remedies: List[str] = Field(default_factory=list, validation_alias=AliasChoices("generalRemedies", "general_remedies"))


class GeocodeResult(BaseModel):
    """Location found for a free-text query."""

    latitude: float = Field(..., ge=-90, le=90, validation_alias=AliasChoices("lat", "latitude"))
    longitude: float = Field(..., ge=-180, le=180, validation_alias=AliasChoices("lng", "longitude"))
    display_address: str = Field(default="", validation_alias=AliasChoices("address", "display_address"))

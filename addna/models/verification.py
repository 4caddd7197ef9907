"""
Pydantic models for verification results and API responses.
"""

from datetime import datetime
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field
from enum import Enum

from .certificate import Certificate, ComplianceSummary


class VerificationStatus(str, Enum):
    """Terminal verification outcomes."""
    VALID = "valid"
    TAMPERED = "tampered"
    UNREGISTERED = "unregistered"
    REVOKED = "revoked"


class Delta(BaseModel):
    """Differences between the presented image and the matched certificate."""
    phash_distance: int = Field(..., ge=0, description="Hamming distance between perceptual hashes")
    color_rule_changed: bool = Field(..., description="Color rule verdict differs from baseline")
    safe_zone_changed: bool = Field(..., description="Safe zone verdict differs from baseline")
    dominant_color_deviation: float = Field(..., ge=0.0, description="Mean RGB distance of aligned palette entries")


class ComplianceDelta(BaseModel):
    color_rule_changed: bool
    safe_zone_changed: bool


class VerificationResult(BaseModel):
    """Outcome of a single verification call. Never persisted."""
    status: VerificationStatus = Field(..., description="Classification outcome")
    dna_match: bool = Field(..., description="Candidate DNA matched a registry key exactly")
    delta: Optional[Delta] = None
    stored_compliance: Optional[ComplianceSummary] = None
    current_compliance: Optional[ComplianceSummary] = None
    compliance_delta: Optional[ComplianceDelta] = None
    stored_certificate: Optional[Certificate] = None
    verification_time: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        use_enum_values = True


class StatsResponse(BaseModel):
    """Point-in-time registry statistics."""
    total_approved: int = Field(..., ge=0)
    total_revoked: int = Field(..., ge=0)
    total_verifications: int = Field(..., ge=0)
    total_tamper_flags: int = Field(..., ge=0)


class RevokeResponse(BaseModel):
    success: bool
    message: str
    dna: str


class PhishingCheckRequest(BaseModel):
    url: str = Field(..., description="Landing page URL attached to the creative")


class PhishingCheckResponse(BaseModel):
    authentic: bool = Field(..., description="Domain is on the brand whitelist")
    domain: str


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Overall service status")
    version: str = Field(..., description="API version")
    components: Dict[str, Any] = Field(..., description="Component health status")

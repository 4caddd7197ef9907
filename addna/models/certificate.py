"""
Pydantic models for DNA certificates and compliance summaries.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field
from enum import Enum


class ComplianceLevel(str, Enum):
    """Three-level verdict of a brand rule."""
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


class CertificateStatus(str, Enum):
    """Lifecycle status of a certificate. Only approved -> revoked is allowed."""
    APPROVED = "approved"
    REVOKED = "revoked"


class ComplianceSummary(BaseModel):
    """Brand rule verdicts computed from one image."""
    color_rule: ComplianceLevel = Field(..., description="Brand color rule verdict")
    safe_zone: ComplianceLevel = Field(..., description="Text safe zone verdict")
    notes: List[str] = Field(default_factory=list, description="Color notes followed by safe zone notes")

    class Config:
        use_enum_values = True
        frozen = True


class CertificateMetadata(BaseModel):
    """Inputs of the DNA derivation, stored write-once."""
    perceptual_hash: str = Field(..., description="Perceptual hash (hex)")
    color_palette: List[Tuple[int, int, int]] = Field(default_factory=list, description="Dominant colors as RGB triples")
    width: int = Field(..., ge=0, description="Width in pixels")
    height: int = Field(..., ge=0, description="Height in pixels")
    mime_type: str = Field(..., description="Declared MIME type")
    brand_rule_version: str = Field(..., description="Brand rule version tag")

    class Config:
        frozen = True


class Certificate(BaseModel):
    """Registered creative. Immutable except through revocation."""
    dna: str = Field(..., description="SHA-256 DNA token, primary key")
    certificate_id: str = Field(..., description="Unique certificate identifier")
    metadata: CertificateMetadata
    compliance: ComplianceSummary
    status: CertificateStatus = Field(default=CertificateStatus.APPROVED)
    filename: str = Field(default="", description="Original filename, informational only")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    revoked_at: Optional[datetime] = Field(None, description="When the certificate was revoked")
    qr_code: Optional[str] = Field(None, description="PNG data URL linking to the verify page")

    class Config:
        use_enum_values = True
        frozen = True

    @property
    def is_revoked(self) -> bool:
        return self.status == CertificateStatus.REVOKED

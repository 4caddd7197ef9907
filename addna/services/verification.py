"""
DNA issuance and verification engine.

Classifies a presented creative against the fingerprint registry as one of
valid, tampered, unregistered or revoked, with a delta explaining what
changed relative to the registered original.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

import structlog

from addna import config
from addna.core.errors import ExtractionError, PayloadTooLargeError, UnsupportedMediaTypeError, ValidationError
from addna.core.registry import FingerprintRegistry
from addna.core.utils import format_file_size, new_certificate_id
from addna.models.certificate import Certificate, CertificateMetadata, CertificateStatus, ComplianceSummary
from addna.models.features import ImageFeatures
from addna.models.verification import ComplianceDelta, Delta, StatsResponse, VerificationResult, VerificationStatus
from addna.services.compliance import color_distance, evaluate_compliance
from addna.services.dna import derive_dna
from addna.services.features import FeatureExtractor
from addna.services.image_hash import hamming_distance
from addna.services.qr import make_qr_data_url, verify_url_for

logger = structlog.get_logger()


def calculate_color_deviation(colors1: Sequence[Sequence[float]], colors2: Sequence[Sequence[float]]) -> float:
    """Mean distance between index-aligned palette entries, rounded to 2 decimals."""
    pairs = list(zip(colors1, colors2))
    if not pairs:
        return 0.0
    total = sum(color_distance(c1, c2) for c1, c2 in pairs)
    return round(total / len(pairs), 2)


def find_nearest(perceptual_hash: str, certificates: Iterable[Certificate]) -> Tuple[Optional[Certificate], Optional[int]]:
    """
    Linear scan for the certificate with the closest perceptual hash.
    Ties keep the first certificate encountered.
    """
    nearest, nearest_distance = None, None
    for certificate in certificates:
        distance = hamming_distance(perceptual_hash, certificate.metadata.perceptual_hash)
        if nearest_distance is None or distance < nearest_distance:
            nearest, nearest_distance = certificate, distance
    return nearest, nearest_distance


class DNAService:
    """Issues, verifies and revokes creative DNA certificates."""

    def __init__(self,
                 registry: FingerprintRegistry,
                 extractor: Optional[FeatureExtractor] = None,
                 brand_colors: Optional[List[Tuple[int, int, int]]] = None,
                 brand_rule_version: Optional[str] = None,
                 enable_qr_codes: Optional[bool] = None):
        self.registry = registry
        self.extractor = extractor or FeatureExtractor()
        self.brand_colors = brand_colors or config.BRAND_COLORS
        self.brand_rule_version = brand_rule_version or config.BRAND_RULE_VERSION
        self.enable_qr_codes = config.ENABLE_QR_CODES if enable_qr_codes is None else enable_qr_codes

    def _validate(self, data: bytes, mime_type: str):
        if not data:
            raise ValidationError("No image data provided")
        if mime_type not in config.SUPPORTED_IMAGE_TYPES:
            raise UnsupportedMediaTypeError(
                f"Unsupported media type: {mime_type}. Supported types: {', '.join(sorted(config.SUPPORTED_IMAGE_TYPES))}"
            )
        if len(data) > config.MAX_FILE_SIZE:
            raise PayloadTooLargeError(
                f"File size {format_file_size(len(data))} exceeds maximum of {format_file_size(config.MAX_FILE_SIZE)}"
            )

    def fingerprint(self, data: bytes, mime_type: str, timeout: Optional[float] = None) -> Tuple[str, ImageFeatures]:
        """Validate input, extract features and derive the candidate DNA."""
        self._validate(data, mime_type)
        try:
            features = self.extractor.extract(data, timeout=timeout)
        except ExtractionError as e:
            logger.info("Rejected image", mime_type=mime_type, size=len(data), reason=str(e))
            raise

        dna = derive_dna(
            features.perceptual_hash,
            features.palette,
            features.width,
            features.height,
            mime_type,
            self.brand_rule_version,
        )
        return dna, features

    def _compliance(self, features: ImageFeatures) -> ComplianceSummary:
        return evaluate_compliance(
            features.palette,
            features.text_regions,
            features.width,
            features.height,
            self.brand_colors,
        )

    def issue(self, filename: str, data: bytes, mime_type: str, timeout: Optional[float] = None) -> Certificate:
        """
        Fingerprint an original creative and publish its certificate.

        Re-issuing identical content yields the same DNA and replaces the
        earlier certificate.
        """
        dna, features = self.fingerprint(data, mime_type, timeout)
        compliance = self._compliance(features)

        certificate = Certificate(
            dna=dna,
            certificate_id=new_certificate_id(),
            metadata=CertificateMetadata(
                perceptual_hash=features.perceptual_hash,
                color_palette=features.palette,
                width=features.width,
                height=features.height,
                mime_type=mime_type,
                brand_rule_version=self.brand_rule_version,
            ),
            compliance=compliance,
            status=CertificateStatus.APPROVED,
            filename=filename or "",
            created_at=datetime.utcnow(),
            qr_code=make_qr_data_url(verify_url_for(dna)) if self.enable_qr_codes else None,
        )
        self.registry.put(dna, certificate)

        logger.info("Certificate issued",
                    dna=dna,
                    certificate_id=certificate.certificate_id,
                    filename=certificate.filename,
                    color_rule=compliance.color_rule,
                    safe_zone=compliance.safe_zone)
        return certificate

    def _compare(self, features: ImageFeatures, stored: Certificate) -> Tuple[Delta, ComplianceSummary, ComplianceDelta]:
        current = self._compliance(features)
        color_rule_changed = current.color_rule != stored.compliance.color_rule
        safe_zone_changed = current.safe_zone != stored.compliance.safe_zone

        delta = Delta(
            phash_distance=hamming_distance(features.perceptual_hash, stored.metadata.perceptual_hash),
            color_rule_changed=color_rule_changed,
            safe_zone_changed=safe_zone_changed,
            dominant_color_deviation=calculate_color_deviation(features.palette, stored.metadata.color_palette),
        )
        return delta, current, ComplianceDelta(
            color_rule_changed=color_rule_changed,
            safe_zone_changed=safe_zone_changed,
        )

    def verify(self, data: bytes, mime_type: str, timeout: Optional[float] = None) -> VerificationResult:
        """
        Classify presented image bytes against the registry.

        Invalid input raises ValidationError before the registry is touched;
        every other call counts as a verification.
        """
        dna, features = self.fingerprint(data, mime_type, timeout)
        verification_time = datetime.utcnow()

        self.registry.increment_verification()
        registered = self.registry.get(dna)

        if registered is None:
            return self._verify_near_duplicate(features, verification_time)

        if registered.is_revoked:
            logger.info("Verified revoked creative", dna=dna)
            return VerificationResult(
                status=VerificationStatus.REVOKED,
                dna_match=True,
                stored_certificate=registered,
                stored_compliance=registered.compliance,
                verification_time=verification_time,
            )

        # Hash and palette are part of the DNA, so a mismatch here means the
        # stored metadata no longer agrees with its own key.
        delta, current, compliance_delta = self._compare(features, registered)
        unchanged = not delta.color_rule_changed and not delta.safe_zone_changed

        if delta.phash_distance <= config.PHASH_THRESHOLD and unchanged:
            status = VerificationStatus.VALID
        else:
            status = VerificationStatus.TAMPERED
            self.registry.increment_tamper_flag()

        logger.info("Verified registered creative",
                    dna=dna,
                    status=status.value,
                    phash_distance=delta.phash_distance)
        return VerificationResult(
            status=status,
            dna_match=True,
            delta=delta,
            stored_compliance=registered.compliance,
            current_compliance=current,
            compliance_delta=compliance_delta,
            stored_certificate=registered,
            verification_time=verification_time,
        )

    def _verify_near_duplicate(self, features: ImageFeatures, verification_time: datetime) -> VerificationResult:
        nearest, distance = find_nearest(features.perceptual_hash, self.registry.all())

        if nearest is None or distance > config.NEAR_DUPLICATE_THRESHOLD:
            logger.info("Verified unregistered creative", nearest_distance=distance)
            return VerificationResult(
                status=VerificationStatus.UNREGISTERED,
                dna_match=False,
                verification_time=verification_time,
            )

        self.registry.increment_tamper_flag()
        delta, current, compliance_delta = self._compare(features, nearest)

        logger.warning("Near-duplicate of registered creative",
                       nearest_dna=nearest.dna,
                       phash_distance=delta.phash_distance,
                       color_rule_changed=delta.color_rule_changed,
                       safe_zone_changed=delta.safe_zone_changed)
        return VerificationResult(
            status=VerificationStatus.TAMPERED,
            dna_match=False,
            delta=delta,
            stored_compliance=nearest.compliance,
            current_compliance=current,
            compliance_delta=compliance_delta,
            stored_certificate=nearest,
            verification_time=verification_time,
        )

    def verify_dna(self, dna: str) -> VerificationResult:
        """
        Look up a DNA token directly, e.g. from a scanned QR code.
        Only hits on approved certificates count as verifications.
        """
        registered = self.registry.get(dna)

        if registered is None:
            return VerificationResult(status=VerificationStatus.UNREGISTERED, dna_match=False)

        if registered.is_revoked:
            return VerificationResult(
                status=VerificationStatus.REVOKED,
                dna_match=True,
                stored_certificate=registered,
            )

        self.registry.increment_verification()
        return VerificationResult(
            status=VerificationStatus.VALID,
            dna_match=True,
            stored_certificate=registered,
            stored_compliance=registered.compliance,
        )

    def revoke(self, dna: str) -> bool:
        revoked = self.registry.revoke(dna)
        if not revoked:
            logger.info("Revocation requested for unknown DNA", dna=dna)
        return revoked

    def stats(self) -> StatsResponse:
        certificates = self.registry.all()
        verifications, tamper_flags = self.registry.counters()
        revoked = sum(1 for c in certificates if c.is_revoked)
        return StatsResponse(
            total_approved=len(certificates) - revoked,
            total_revoked=revoked,
            total_verifications=verifications,
            total_tamper_flags=tamper_flags,
        )

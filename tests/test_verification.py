import pytest

from addna.core.errors import ExtractionError, PayloadTooLargeError, UnsupportedMediaTypeError, ValidationError, RegistryUnavailableError
from addna.models.certificate import Certificate, CertificateMetadata
from addna.models.features import TextRegion
from addna.models.verification import VerificationStatus
from addna.services.compliance import evaluate_compliance
from addna.services.dna import derive_dna
from addna.services.verification import DNAService, calculate_color_deviation, find_nearest

from conftest import BASE_HASH, BRAND_BLUE, hash_at_distance


def test_issue_then_verify_is_valid(service, extractor):
    data = extractor.add(b"original")
    certificate = service.issue("ad.png", data, "image/png")

    assert certificate.status == "approved"
    assert certificate.metadata.perceptual_hash == BASE_HASH
    assert certificate.compliance.color_rule == "PASS"

    result = service.verify(data, "image/png")
    assert result.status == VerificationStatus.VALID
    assert result.dna_match is True
    assert result.delta.phash_distance == 0
    assert result.delta.dominant_color_deviation == 0.0
    assert result.stored_certificate.dna == certificate.dna


def test_issue_assigns_unique_ids_and_overwrites_same_dna(service, extractor, registry):
    data = extractor.add(b"original")
    first = service.issue("a.png", data, "image/png")
    second = service.issue("b.png", data, "image/png")

    assert first.dna == second.dna
    assert first.certificate_id != second.certificate_id
    assert registry.get(first.dna).filename == "b.png"
    assert len(registry.all()) == 1


def test_verify_empty_registry_is_unregistered(service, extractor):
    data = extractor.add(b"anything", perceptual_hash=hash_at_distance(3))
    result = service.verify(data, "image/png")

    assert result.status == VerificationStatus.UNREGISTERED
    assert result.dna_match is False
    assert result.stored_certificate is None
    assert result.delta is None


def test_verify_revoked(service, extractor):
    data = extractor.add(b"original")
    certificate = service.issue("ad.png", data, "image/png")
    assert service.revoke(certificate.dna) is True

    result = service.verify(data, "image/png")
    assert result.status == VerificationStatus.REVOKED
    assert result.dna_match is True
    assert result.delta is None
    assert result.stored_compliance == certificate.compliance
    assert service.stats().total_tamper_flags == 0


def test_near_duplicate_at_threshold_is_tampered(service, extractor):
    original = service.issue("ad.png", extractor.add(b"original"), "image/png")
    edited = extractor.add(b"edited", perceptual_hash=hash_at_distance(10), palette=[(240, 240, 240)])

    result = service.verify(edited, "image/png")
    assert result.status == VerificationStatus.TAMPERED
    assert result.dna_match is False
    assert result.stored_certificate.dna == original.dna
    assert result.delta.phash_distance == 10
    assert result.delta.color_rule_changed is False
    assert result.delta.dominant_color_deviation == 298.01
    assert service.stats().total_tamper_flags == 1


def test_near_duplicate_beyond_threshold_is_unregistered(service, extractor):
    service.issue("ad.png", extractor.add(b"original"), "image/png")
    other = extractor.add(b"other", perceptual_hash=hash_at_distance(11))

    result = service.verify(other, "image/png")
    assert result.status == VerificationStatus.UNREGISTERED
    assert result.stored_certificate is None
    assert service.stats().total_tamper_flags == 0


def test_near_duplicate_reports_compliance_changes(service, extractor):
    service.issue("ad.png", extractor.add(b"original"), "image/png")
    edited = extractor.add(
        b"edited",
        perceptual_hash=hash_at_distance(4),
        palette=[(120, 120, 120)],
        text_regions=[TextRegion(x0=2, y0=100, x1=50, y1=120)],
    )

    result = service.verify(edited, "image/png")
    assert result.status == VerificationStatus.TAMPERED
    assert result.compliance_delta.color_rule_changed is True
    assert result.compliance_delta.safe_zone_changed is True
    assert result.current_compliance.color_rule == "FAIL"
    assert result.current_compliance.safe_zone == "FAIL"
    assert result.stored_compliance.color_rule == "PASS"


def seed_mismatched_certificate(registry, features, stored_hash):
    """Store a certificate whose key matches `features` but whose hash does not."""
    dna = derive_dna(features.perceptual_hash, features.palette, features.width, features.height, "image/png", "v1")
    registry.put(dna, Certificate(
        dna=dna,
        certificate_id="seeded",
        metadata=CertificateMetadata(
            perceptual_hash=stored_hash,
            color_palette=features.palette,
            width=features.width,
            height=features.height,
            mime_type="image/png",
            brand_rule_version="v1",
        ),
        compliance=evaluate_compliance(features.palette, features.text_regions, features.width, features.height),
    ))
    return dna


def test_exact_match_with_hash_distance_six_is_tampered(service, extractor, registry):
    data = extractor.add(b"presented", perceptual_hash=hash_at_distance(6))
    dna = seed_mismatched_certificate(registry, extractor.features[data], BASE_HASH)

    result = service.verify(data, "image/png")
    assert result.status == VerificationStatus.TAMPERED
    assert result.dna_match is True
    assert result.delta.phash_distance == 6
    assert result.stored_certificate.dna == dna
    assert service.stats().total_tamper_flags == 1


def test_exact_match_with_hash_distance_five_is_valid(service, extractor, registry):
    data = extractor.add(b"presented", perceptual_hash=hash_at_distance(5))
    seed_mismatched_certificate(registry, extractor.features[data], BASE_HASH)

    result = service.verify(data, "image/png")
    assert result.status == VerificationStatus.VALID
    assert result.delta.phash_distance == 5


def test_counters_track_every_verification(service, extractor):
    original = extractor.add(b"original")
    service.issue("ad.png", original, "image/png")
    edited = extractor.add(b"edited", perceptual_hash=hash_at_distance(2), palette=[BRAND_BLUE, (1, 1, 1)])
    stranger = extractor.add(b"stranger", perceptual_hash="f" * 64)

    for data in (original, edited, stranger, original, edited):
        service.verify(data, "image/png")

    stats = service.stats()
    assert stats.total_verifications == 5
    assert stats.total_tamper_flags == 2
    assert stats.total_approved == 1
    assert stats.total_revoked == 0


def test_invalid_input_does_not_touch_counters(service, extractor):
    with pytest.raises(ValidationError):
        service.verify(b"", "image/png")
    with pytest.raises(UnsupportedMediaTypeError):
        service.verify(extractor.add(b"gif"), "image/gif")
    with pytest.raises(ExtractionError):
        service.verify(b"corrupt", "image/png")

    assert service.stats().total_verifications == 0


def test_oversize_payload_is_rejected(service, extractor, monkeypatch):
    from addna import config
    monkeypatch.setattr(config, "MAX_FILE_SIZE", 4)
    with pytest.raises(PayloadTooLargeError):
        service.issue("ad.png", extractor.add(b"too big"), "image/png")


def test_extraction_error_is_a_validation_error():
    assert issubclass(ExtractionError, ValidationError)
    assert not issubclass(RegistryUnavailableError, ValidationError)


def test_closed_registry_surfaces_infrastructure_error(service, extractor, registry):
    registry.close()
    with pytest.raises(RegistryUnavailableError):
        service.verify(extractor.add(b"original"), "image/png")


def test_revoke_unknown_and_repeat(service, extractor, registry):
    assert service.revoke("0" * 64) is False

    certificate = service.issue("ad.png", extractor.add(b"original"), "image/png")
    assert service.revoke(certificate.dna) is True
    revoked_at = registry.get(certificate.dna).revoked_at
    assert service.revoke(certificate.dna) is True
    assert registry.get(certificate.dna).revoked_at == revoked_at

    stats = service.stats()
    assert stats.total_approved == 0
    assert stats.total_revoked == 1


def test_verify_dna_lookup(service, extractor):
    certificate = service.issue("ad.png", extractor.add(b"original"), "image/png")

    assert service.verify_dna("unknown").status == VerificationStatus.UNREGISTERED
    assert service.verify_dna(certificate.dna).status == VerificationStatus.VALID
    assert service.stats().total_verifications == 1

    service.revoke(certificate.dna)
    result = service.verify_dna(certificate.dna)
    assert result.status == VerificationStatus.REVOKED
    assert result.dna_match is True
    assert service.stats().total_verifications == 1


def test_issue_attaches_qr_code(registry, extractor):
    service = DNAService(registry, extractor, enable_qr_codes=True)
    certificate = service.issue("ad.png", extractor.add(b"original"), "image/png")
    assert certificate.qr_code.startswith("data:image/png;base64,")


def test_find_nearest_prefers_first_on_ties(service, extractor, registry):
    first = service.issue("a.png", extractor.add(b"a", perceptual_hash="1" + BASE_HASH[1:]), "image/png")
    service.issue("b.png", extractor.add(b"b", perceptual_hash="2" + BASE_HASH[1:]), "image/png")

    nearest, distance = find_nearest(BASE_HASH, registry.all())
    assert nearest.dna == first.dna
    assert distance == 1


def test_find_nearest_empty():
    assert find_nearest(BASE_HASH, []) == (None, None)


def test_calculate_color_deviation():
    assert calculate_color_deviation([], [(1, 2, 3)]) == 0.0
    assert calculate_color_deviation([(0, 0, 0), (10, 0, 0)], [(3, 4, 0)]) == 5.0
    assert calculate_color_deviation([(0, 0, 0), (0, 0, 0)], [(1, 0, 0), (0, 2, 0)]) == 1.5
    assert calculate_color_deviation([(0, 0, 0)], [(1, 1, 1)]) == 1.73

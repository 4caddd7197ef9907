import threading
import structlog
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from addna.core.errors import RegistryUnavailableError
from addna.models.certificate import Certificate, CertificateStatus

logger = structlog.get_logger()


class FingerprintRegistry(ABC):
    """
    Key-value store of DNA -> Certificate plus the process-wide counters.

    Implementations must be safe for concurrent use and raise
    RegistryUnavailableError when the backend cannot serve a request.
    """

    @abstractmethod
    def get(self, dna: str) -> Optional[Certificate]:
        """Return the certificate stored under `dna`, if any."""

    @abstractmethod
    def put(self, dna: str, certificate: Certificate) -> None:
        """Store `certificate` under `dna`, replacing any earlier entry."""

    @abstractmethod
    def all(self) -> List[Certificate]:
        """Return a snapshot of every stored certificate."""

    @abstractmethod
    def revoke(self, dna: str) -> bool:
        """Mark the entry revoked. False when the DNA is unknown."""

    @abstractmethod
    def remove(self, dna: str) -> bool:
        """Delete the entry. False when the DNA is unknown."""

    @abstractmethod
    def increment_verification(self) -> int:
        pass

    @abstractmethod
    def increment_tamper_flag(self) -> int:
        pass

    @abstractmethod
    def counters(self) -> Tuple[int, int]:
        """Return (verification_count, tamper_flag_count)."""

    def is_available(self) -> bool:
        return True

    def close(self):
        pass


class InMemoryRegistry(FingerprintRegistry):
    """Thread-safe in-process registry guarded by a single lock."""

    def __init__(self):
        self._entries: Dict[str, Certificate] = {}
        self._lock = threading.Lock()
        self._verification_count = 0
        self._tamper_flag_count = 0
        self._closed = False
        logger.info("In-memory fingerprint registry initialized")

    def _ensure_open(self):
        if self._closed:
            raise RegistryUnavailableError("Fingerprint registry is closed")

    def get(self, dna: str) -> Optional[Certificate]:
        with self._lock:
            self._ensure_open()
            return self._entries.get(dna)

    def put(self, dna: str, certificate: Certificate) -> None:
        with self._lock:
            self._ensure_open()
            replaced = dna in self._entries
            self._entries[dna] = certificate
        logger.debug("Certificate stored", dna=dna, replaced=replaced)

    def all(self) -> List[Certificate]:
        with self._lock:
            self._ensure_open()
            return list(self._entries.values())

    def revoke(self, dna: str) -> bool:
        with self._lock:
            self._ensure_open()
            entry = self._entries.get(dna)
            if entry is None:
                return False
            if entry.is_revoked:
                # First revocation time wins
                return True
            self._entries[dna] = entry.model_copy(update={
                "status": CertificateStatus.REVOKED.value,
                "revoked_at": datetime.utcnow(),
            })
        logger.info("Certificate revoked", dna=dna, certificate_id=entry.certificate_id)
        return True

    def remove(self, dna: str) -> bool:
        with self._lock:
            self._ensure_open()
            removed = self._entries.pop(dna, None) is not None
        if removed:
            logger.info("Certificate removed", dna=dna)
        return removed

    def increment_verification(self) -> int:
        with self._lock:
            self._ensure_open()
            self._verification_count += 1
            return self._verification_count

    def increment_tamper_flag(self) -> int:
        with self._lock:
            self._ensure_open()
            self._tamper_flag_count += 1
            return self._tamper_flag_count

    def counters(self) -> Tuple[int, int]:
        with self._lock:
            self._ensure_open()
            return self._verification_count, self._tamper_flag_count

    def is_available(self) -> bool:
        return not self._closed

    def close(self):
        with self._lock:
            self._closed = True
        logger.info("Fingerprint registry closed", entries=len(self._entries))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

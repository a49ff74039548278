import logging
import random
import re
import string
from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlmodel import Session, select

from app.core.config import settings
from app.core.errors import (
    CertificateNotFound,
    DuplicateCertificate,
    InvalidCertificate,
    PersistenceFailure,
    UserNotFound,
)
from app.db.session import commit_or_fail
from app.models.certificate import Certificate, CertificateFileType
from app.models.user import User
from app.services.image import ImageService

logger = logging.getLogger(__name__)

SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
SUFFIX_LENGTH = 4
SUFFIX_PATTERN = re.compile(r"^[A-Z0-9]{4}$")
MAX_SUFFIX_ATTEMPTS = 100
UPDATABLE_FIELDS = ["title", "description", "file_url", "file_type", "image_id"]


def format_certificate_id(gen_number: int, suffix: str) -> str:
    return f"{settings.CERTIFICATE_PREFIX}-GEN{gen_number}-{suffix}"


def random_suffix() -> str:
    return "".join(random.choices(SUFFIX_ALPHABET, k=SUFFIX_LENGTH))


class CertificateService:
    def __init__(self, session: Session):
        self.session = session

    def exists(self, certificate_id: str) -> bool:
        return self.session.exec(
            select(Certificate).where(Certificate.certificate_id == certificate_id)
        ).first() is not None

    def generate_suffix(self, gen_number: Optional[int] = None) -> str:
        """Random suffix, unused for ``gen_number`` when one is given."""
        for _ in range(MAX_SUFFIX_ATTEMPTS):
            suffix = random_suffix()
            if gen_number is None or not self.exists(format_certificate_id(gen_number, suffix)):
                return suffix
        raise PersistenceFailure("Could not generate unique suffix")

    def get_certificate(self, certificate_pk: int) -> Certificate:
        certificate = self.session.get(Certificate, certificate_pk)
        if not certificate:
            raise CertificateNotFound()
        return certificate

    def list_certificates(self, search: Optional[str] = None, gen_number: Optional[int] = None) -> List[Dict[str, Any]]:
        query = select(Certificate)
        if gen_number is not None:
            query = query.where(Certificate.gen_number == gen_number)
        certificates = self.session.exec(query.order_by(desc(Certificate.issued_at), desc(Certificate.id))).all()

        results = [self.serialize(certificate) for certificate in certificates]
        if search and search.strip():
            needle = search.strip().lower()
            results = [
                item for item in results
                if needle in item["certificate_id"].lower()
                or needle in ((item["member"] or {}).get("full_name") or "").lower()
                or needle in ((item["member"] or {}).get("username") or "").lower()
            ]
        return results

    def create_certificate(self, issuer: User, data: Dict[str, Any]) -> Certificate:
        user_id = data.get("user_id")
        if not user_id:
            raise InvalidCertificate("User ID is required")
        if data.get("gen_number") is None:
            raise InvalidCertificate("Generation number is required")
        if not self.session.get(User, user_id):
            raise UserNotFound()

        gen_number = data["gen_number"]
        suffix = data.get("suffix")
        if suffix:
            suffix = suffix.upper()
            if not SUFFIX_PATTERN.match(suffix):
                raise InvalidCertificate("Suffix must be 4 characters (A-Z, 0-9)")
        else:
            suffix = self.generate_suffix(gen_number)

        certificate_id = format_certificate_id(gen_number, suffix)
        if self.exists(certificate_id):
            raise DuplicateCertificate(f"Certificate ID {certificate_id} already exists")

        file_type = data.get("file_type") or CertificateFileType.IMAGE
        try:
            file_type = CertificateFileType(file_type)
        except ValueError:
            raise InvalidCertificate("Invalid file type")

        certificate = Certificate(
            certificate_id=certificate_id,
            gen_number=gen_number,
            suffix=suffix,
            user_id=user_id,
            issued_by=issuer.id,
            image_id=data.get("image_id") or None,
            file_url=data.get("file_url") or None,
            file_type=file_type,
            title=data.get("title") or "Course Completion Certificate",
            description=data.get("description"),
        )
        self.session.add(certificate)
        commit_or_fail(self.session, "create certificate")
        self.session.refresh(certificate)
        logger.info(f"Issued certificate {certificate_id} to user {user_id}")
        return certificate

    def update_certificate(self, certificate_pk: int, updates: Dict[str, Any]) -> Certificate:
        certificate = self.get_certificate(certificate_pk)
        for key, value in updates.items():
            if key not in UPDATABLE_FIELDS:
                continue
            if key == "file_type":
                try:
                    value = CertificateFileType(value)
                except ValueError:
                    raise InvalidCertificate("Invalid file type")
            setattr(certificate, key, value)
        self.session.add(certificate)
        commit_or_fail(self.session, "update certificate")
        self.session.refresh(certificate)
        return certificate

    def delete_certificate(self, certificate_pk: int) -> None:
        certificate = self.get_certificate(certificate_pk)
        self.session.delete(certificate)
        commit_or_fail(self.session, "delete certificate")

    def file_url(self, certificate: Certificate) -> Optional[str]:
        if certificate.file_url:
            return certificate.file_url
        images = ImageService(self.session).resolve([certificate.image_id])
        image = images.get(certificate.image_id) if certificate.image_id else None
        return image.public_url if image else None

    def _profile(self, user_id: Optional[int], detailed: bool = False) -> Optional[Dict[str, Any]]:
        if not user_id:
            return None
        user = self.session.get(User, user_id)
        if not user:
            return None
        profile = {"id": user.id, "username": user.username, "full_name": user.full_name}
        if detailed:
            profile.update(avatar_url=user.avatar_url, bio=user.bio, social_links=user.social_links)
        return profile

    def serialize(self, certificate: Certificate) -> Dict[str, Any]:
        data = certificate.model_dump()
        data["file_url"] = self.file_url(certificate)
        data["member"] = self._profile(certificate.user_id, detailed=True)
        data["issuer"] = self._profile(certificate.issued_by)
        return data

    def verify(self, certificate_id: str) -> Dict[str, Any]:
        """Public verification; lookup is case-insensitive."""
        certificate = self.session.exec(
            select(Certificate).where(Certificate.certificate_id == certificate_id.strip().upper())
        ).first()
        if not certificate:
            return {"valid": False, "error": "Certificate not found"}

        return {
            "valid": True,
            "certificate": {
                "id": certificate.id,
                "certificate_id": certificate.certificate_id,
                "title": certificate.title,
                "description": certificate.description,
                "gen_number": certificate.gen_number,
                "file_url": self.file_url(certificate),
                "file_type": certificate.file_type,
                "issued_at": certificate.issued_at,
            },
            "member": self._profile(certificate.user_id, detailed=True),
            "issuer": self._profile(certificate.issued_by),
        }

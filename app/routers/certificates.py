from fastapi import APIRouter, Depends
from sqlmodel import Session
from app.db.session import get_session
from app.services.certificate import CertificateService

router = APIRouter()

@router.get("/verify/{certificate_id}")
def verify_certificate(certificate_id: str, session: Session = Depends(get_session)):
    """
    Public lookup used by the verification page.
    """
    return {"success": True, **CertificateService(session).verify(certificate_id)}

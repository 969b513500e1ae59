from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lapor.core.auth import require_roles
from lapor.core.db import get_db
from lapor.models.profile import ProfileRole
from lapor.schemas.report import PetugasDashboardOut
from lapor.services import reports as report_service
from lapor.services.workflow import Actor

router = APIRouter(prefix="/petugas", tags=["petugas"])


@router.get("/dashboard", response_model=PetugasDashboardOut)
def petugas_dashboard(
    db: Session = Depends(get_db),
    _actor: Actor = Depends(require_roles(ProfileRole.PETUGAS, ProfileRole.ADMIN)),
):
    return report_service.petugas_dashboard(db)

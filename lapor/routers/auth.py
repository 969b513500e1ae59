import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from lapor.core.auth import get_current_profile
from lapor.core.db import get_db
from lapor.core.security import hash_password, password_needs_rehash, token_for_profile, verify_password
from lapor.models.profile import Profile, ProfileRole
from lapor.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from lapor.schemas.profile import ProfileOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(profile: Profile) -> TokenResponse:
    return TokenResponse(access_token=token_for_profile(profile), profile=ProfileOut.model_validate(profile))


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    existing = db.query(Profile).filter(Profile.email == payload.email).first()
    if existing:
        raise HTTPException(status_code=409, detail="Email sudah terdaftar")

    # every self-registered profile starts as a Pelapor
    profile = Profile(
        id=str(uuid.uuid4()),
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=ProfileRole.USER,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info("Profile %s registered", profile.id)
    return _token_response(profile)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    profile = db.query(Profile).filter(Profile.email == payload.email.strip().lower()).first()
    if not profile or not verify_password(payload.password, profile.password_hash):
        raise HTTPException(status_code=401, detail="Email atau password salah")

    if password_needs_rehash(profile.password_hash):
        profile.password_hash = hash_password(payload.password)
        db.commit()
        db.refresh(profile)
    return _token_response(profile)


@router.get("/me", response_model=ProfileOut)
def me(profile: Profile = Depends(get_current_profile)):
    return profile

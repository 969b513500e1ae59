from datetime import datetime, timedelta, timezone

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerifyMismatchError
from jose import JWTError, jwt

from lapor.core.config import settings
from lapor.models.profile import Profile, ProfileRole

hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """False for a wrong password and for a stored hash argon2 cannot read."""
    try:
        return hasher.verify(password_hash, password)
    except (VerifyMismatchError, InvalidHashError):
        return False


def password_needs_rehash(password_hash: str) -> bool:
    return hasher.check_needs_rehash(password_hash)


def token_for_profile(profile: Profile) -> str:
    """Signed bearer token carrying the profile id and its role at sign-in time."""
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    claims = {
        "sub": profile.id,
        "role": ProfileRole(profile.role).value,
        "exp": expires_at,
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def profile_id_from_token(token: str) -> str:
    # role is re-read from the database on every request, only `sub` is trusted
    claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    profile_id = claims.get("sub")
    if not isinstance(profile_id, str) or not profile_id:
        raise JWTError("token has no subject")
    return profile_id

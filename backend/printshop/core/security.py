"""Contraseñas (bcrypt) y tokens JWT de acceso/refresco para los usuarios del taller."""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from printshop.core.config import settings

ACCESS = "access"
REFRESH = "refresh"

password_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


def hash_password(password: str) -> str:
    return password_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return password_context.verify(password, hashed_password)
    except ValueError:
        # Hash guardado ilegible: se trata como credencial inválida
        return False


def _encode(user_id: int, token_type: str, lifetime: timedelta) -> str:
    issued = datetime.now(timezone.utc)
    claims = {"sub": str(user_id), "type": token_type, "iat": issued, "exp": issued + lifetime}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def issue_token_pair(user_id: int) -> tuple[str, str]:
    access = _encode(user_id, ACCESS, timedelta(minutes=settings.access_token_expire_minutes))
    refresh = _encode(user_id, REFRESH, timedelta(minutes=settings.refresh_token_expire_minutes))
    return access, refresh


def read_token(token: str, token_type: str) -> Optional[int]:
    """Id del usuario si el token es válido, vigente y del tipo esperado"""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        return None
    if claims.get("type") != token_type:
        return None
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        return None

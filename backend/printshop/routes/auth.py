from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from printshop.core.database import get_db
from printshop.core.deps import get_current_user, require_admin
from printshop.core.roles import Role
from printshop.core.security import REFRESH, hash_password, issue_token_pair, read_token, verify_password
from printshop.models.user import User


router = APIRouter()


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class RoleChange(BaseModel):
    role: Role


class UserOut(BaseModel):
    id: int
    email: str
    full_name: Optional[str]
    role: str

    class Config:
        from_attributes = True


@router.post("/register", response_model=TokenResponse)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    # El primer usuario del taller es el dueño; el resto entra como operador
    role = Role.owner if db.query(User).count() == 0 else Role.operador
    user = User(
        email=data.email,
        full_name=data.full_name,
        hashed_password=hash_password(data.password),
        role=role.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    access, refresh = issue_token_pair(user.id)
    return TokenResponse(access_token=access, refresh_token=refresh)


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email).first()
    if not user or not verify_password(data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    access, refresh = issue_token_pair(user.id)
    return TokenResponse(access_token=access, refresh_token=refresh)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token_endpoint(data: RefreshRequest, db: Session = Depends(get_db)):
    user_id = read_token(data.refresh_token, REFRESH)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    access, refresh = issue_token_pair(user.id)
    return TokenResponse(access_token=access, refresh_token=refresh)


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


@router.get("/users", response_model=List[UserOut])
def list_users(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    return db.query(User).order_by(User.id).all()


@router.patch("/users/{user_id}/role", response_model=UserOut)
def change_role(
    user_id: int,
    data: RoleChange,
    db: Session = Depends(get_db),
    current: User = Depends(require_admin),
):
    """Sólo el dueño puede otorgar o quitar el rol de dueño"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    touches_owner = data.role == Role.owner or user.role == Role.owner.value
    if touches_owner and current.role != Role.owner.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the owner can manage the owner role")
    if user.id == current.id and data.role.value != current.role:
        raise HTTPException(status_code=400, detail="You cannot change your own role")
    user.role = data.role.value
    db.commit()
    db.refresh(user)
    return user

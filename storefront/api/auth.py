import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, get_db
from storefront.core.config import settings
from storefront.core.responses import Envelope
from storefront.core.security import create_access_token, hash_password, verify_password
from storefront.db.models import Role, User
from storefront.schemas import LoginPayload, RegisterPayload, TokenRead, UserRead

logger = logging.getLogger(__name__)

router = APIRouter()  # main.py mounts at /api/auth


@router.post("/register", response_model=Envelope[UserRead], status_code=status.HTTP_201_CREATED)
def register(payload: RegisterPayload, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == str(payload.email)).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        name=payload.name,
        email=str(payload.email),
        password_hash=hash_password(payload.password),
        role=Role.USER.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return Envelope(data=UserRead.model_validate(user), message="User registered successfully.")


@router.post("/login", response_model=Envelope[TokenRead])
def login(payload: LoginPayload, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == str(payload.email)).first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token, exp = create_access_token(user.id, user.role)
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        max_age=settings.ACCESS_TOKEN_EXPIRES_SECONDS,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite="lax",
    )
    return Envelope(
        data=TokenRead(access_token=token, expires_at=exp, user=UserRead.model_validate(user)),
        message="Logged in successfully.",
    )


@router.post("/logout", response_model=Envelope)
def logout(response: Response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return Envelope(message="Logged out successfully.")


@router.get("/me", response_model=Envelope[UserRead])
def me(user: User = Depends(get_current_user)):
    return Envelope(data=UserRead.model_validate(user), message="User retrieved successfully.")

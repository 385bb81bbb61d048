"""Local identity provider: register, login, current user (AUTH_PROVIDER=local)."""
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.api.deps import get_caller
from app.core.database import get_db
from app.core.errors import AuthenticationError, NotFoundError, PersistenceError, ValidationError
from app.core.security import create_access_token, hash_password, verify_password
from app.models import User
from app.schemas import Token, UserCreate, UserLogin, UserResponse
from app.services.session import CallerContext

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _parse_form(model: type[BaseModel], data: dict):
    """Form fields through the pydantic schema; the first failure becomes a 400."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        err = e.errors()[0]
        if err["loc"] and err["loc"][0] == "email":
            raise ValidationError("Enter a valid email address.") from e
        cause = (err.get("ctx") or {}).get("error")
        raise ValidationError(str(cause) if cause else err["msg"]) from e


@router.post("/register", response_model=UserResponse)
async def register(
    request: Request,
    db: Session = Depends(get_db),
):
    form = await request.form()
    body = _parse_form(
        UserCreate,
        {
            "email": (form.get("email") or "").strip(),
            "password": form.get("password") or "",
            "full_name": (form.get("full_name") or "").strip(),
        },
    )
    if db.exec(select(User).where(User.email == body.email)).first():
        raise ValidationError("This email address is already registered.")
    user = User(email=body.email, hashed_password=hash_password(body.password), full_name=body.full_name)
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        log.exception("Register failed for %s: %s", body.email, e)
        raise PersistenceError("Registration failed", details=str(e)) from e
    log.info("User registered: id=%s", user.id)
    return UserResponse(id=user.id, email=user.email, full_name=user.full_name)


@router.post("/login", response_model=Token)
async def login(
    request: Request,
    db: Session = Depends(get_db),
):
    form = await request.form()
    email = (form.get("email") or "").strip()
    password = form.get("password") or ""
    if not email or not password:
        raise ValidationError("Enter email and password.")
    body = _parse_form(UserLogin, {"email": email, "password": password})
    user = db.exec(select(User).where(User.email == body.email)).first()
    if not user or not verify_password(body.password, user.hashed_password):
        log.warning("Failed login for %s", body.email)
        raise AuthenticationError("Invalid email or password.", reason="invalid-credential")
    return Token(access_token=create_access_token(user.id))


@router.get("/me", response_model=UserResponse)
def me(
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    user = db.get(User, caller.identity.id)
    if not user:
        # Hosted identities have no local account row
        raise NotFoundError("User not found.")
    return UserResponse(id=user.id, email=user.email, full_name=user.full_name)

import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from academy.api.deps import get_current_user, get_db
from academy.core.security import create_access_token, get_password_hash, verify_password
from academy.models.user import User, UserRole, UserStatus
from academy.schemas.user import StudentRegister, Token, UserLogin, UserOut
from academy.services.notifications import notify_users
from academy.services.rate_limit import enforce_login_rate_limit

router = APIRouter()
logger = logging.getLogger(__name__)


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()


def register_students(db: Session, payloads: list[StudentRegister]) -> list[User]:
    """Create student accounts in the caller's transaction; any taken email rejects them all."""
    emails = [payload.email for payload in payloads]
    if len(set(emails)) != len(emails):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Each student needs a distinct email")
    taken = db.execute(select(User.email).where(User.email.in_(emails))).scalars().first()
    if taken:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Email already registered: {taken}")

    users = [
        User(
            **payload.model_dump(exclude={"password"}),
            hashed_password=get_password_hash(payload.password),
            role=UserRole.student,
            status=UserStatus.active,
        )
        for payload in payloads
    ]
    db.add_all(users)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from exc

    admin_ids = db.execute(
        select(User.id).where(User.role == UserRole.admin, User.is_deleted.is_(False))
    ).scalars()
    notify_users(
        db,
        user_ids=list(admin_ids),
        title="New student registration",
        message="; ".join(
            f"{user.name} registered for {', '.join(user.courses) or 'no courses yet'}" for user in users
        )
        + ".",
    )
    return users


@router.post("/register", response_model=UserOut | list[UserOut], status_code=status.HTTP_201_CREATED)
def register(
    payload: StudentRegister | list[StudentRegister] = Body(...),
    db: Session = Depends(get_db),
) -> UserOut | list[UserOut]:
    """Register one student, or several siblings in one call."""
    payloads = payload if isinstance(payload, list) else [payload]
    if not payloads:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="At least one student is required")

    users = register_students(db, payloads)
    db.commit()
    for user in users:
        db.refresh(user)
    logger.info("Registered %d student(s)", len(users))
    return users if isinstance(payload, list) else users[0]


@router.post("/login", response_model=Token)
def login(payload: UserLogin, request: Request, db: Session = Depends(get_db)) -> Token:
    enforce_login_rate_limit(request, payload.email)
    user = find_user_by_email(db, payload.email)
    if user is None or user.is_deleted or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if user.status == UserStatus.inactive:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")

    return Token(access_token=create_access_token(user.id), token_type="bearer", user=user)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)) -> UserOut:
    return current_user


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user)) -> dict:
    return {"success": True}

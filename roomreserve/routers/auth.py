import logging
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from roomreserve import config
from roomreserve.db import get_db
from roomreserve.models.user import User
from roomreserve.schemas.reservation import MessageResponse
from roomreserve.schemas.user import (
    ForgotPassword,
    PasswordChange,
    ResetPassword,
    TokenResponse,
    UserLogin,
    UserResponse,
    UserSignup,
)
from roomreserve.services.engine import ReservationEngine, get_engine
from roomreserve.utils.auth import (
    create_access_token,
    create_reset_token,
    get_current_user,
    get_password_hash,
    hash_reset_token,
    verify_password,
)
from roomreserve.utils.errors import ValidationError
from roomreserve.utils.validation_helpers import validate_email


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


def issue_token(user: User) -> TokenResponse:
    token = create_access_token({"sub": user.id})
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: UserSignup, db: Session = Depends(get_db)):
    """
    Register a student account and log it in.

    - **student_id**: 2 followed by 5 digits.
    - **email**: must belong to the configured school domain.
    - **password**: at least 8 characters.
    """
    try:
        email = validate_email(payload.email, config.ALLOWED_EMAIL_DOMAIN)
    except ValueError as e:
        raise ValidationError(str(e))

    if db.query(User).filter(User.email == email).first():
        logger.error(f"Signup rejected, email already registered: {email}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    if db.query(User).filter(User.student_id == payload.student_id).first():
        logger.error(f"Signup rejected, student ID already registered: {payload.student_id}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Student ID already registered")

    user = User(
        student_id=payload.student_id,
        email=email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        name=f"{payload.first_name} {payload.last_name}",
        hashed_password=get_password_hash(payload.password),
        is_admin=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.debug(f"Created user {user.id} for student {user.student_id}")
    return issue_token(user)


@router.post("/login", response_model=TokenResponse)
def login(payload: UserLogin, db: Session = Depends(get_db)):
    """Exchange a student ID and password for a bearer token."""
    user = db.query(User).filter(User.student_id == payload.student_id).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        logger.error(f"Failed login for student {payload.student_id}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return issue_token(user)


@router.get("/me", response_model=UserResponse)
def me(db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    return db.query(User).filter(User.id == current_user["id"]).first()


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    payload: PasswordChange,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    user = db.query(User).filter(User.id == current_user["id"]).first()
    if not verify_password(payload.current_password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    user.hashed_password = get_password_hash(payload.new_password)
    db.commit()
    return {"message": "Password updated successfully"}


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPassword,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
):
    """
    Email a one-hour password reset link.
    The answer is the same whether or not the address is registered.
    """
    user = db.query(User).filter(User.email == payload.email.strip().lower()).first()
    if user:
        token, token_hash = create_reset_token()
        user.reset_token_hash = token_hash
        user.reset_token_expires_at = engine.clock.now() + timedelta(minutes=config.RESET_TOKEN_EXPIRE_MINUTES)
        db.commit()
        reset_link = f"{config.APP_BASE_URL.rstrip('/')}/reset-password?token={token}"
        try:
            engine.notifier.send_password_reset(user.email, user.first_name, reset_link)
        except Exception:
            logger.exception(f"Failed to send password reset email to user {user.id}")
    else:
        logger.debug("Password reset requested for an unknown email")
    return {"message": "If an account exists for that email, a reset link has been sent."}


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    payload: ResetPassword,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
):
    """Set a new password with a token from the reset email. Each token works once."""
    user = db.query(User).filter(User.reset_token_hash == hash_reset_token(payload.token)).first()
    if not user or user.reset_token_expires_at is None or user.reset_token_expires_at < engine.clock.now():
        logger.error("Rejected invalid or expired password reset token")
        raise ValidationError("Invalid or expired reset token")
    user.hashed_password = get_password_hash(payload.new_password)
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    db.commit()
    logger.info(f"Password reset for user {user.id}")
    return {"message": "Password reset successfully"}

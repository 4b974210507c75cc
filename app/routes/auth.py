import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from app.core.errors import UnauthorizedError
from app.db.session import get_db
from app.models.user import User as UserModel
from app.schemas.user import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    UserCreate,
    UserRead,
)
from app.services import auth as auth_service
from app.utils.email import send_reset_email

router = APIRouter(prefix="/api/auth", tags=["Auth"])

logger = logging.getLogger("auth")


def _auth_payload(user: UserModel) -> dict:
    return {"token": auth_service.issue_token(user), "user": UserRead.model_validate(user)}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user_in: UserCreate, db: Session = Depends(get_db)):
    # role is never taken from the payload: self-registered users are CLIENTE
    user = auth_service.create_user(db, user_in.email, user_in.password, user_in.name, user_in.phone)
    return {"success": True, "message": "Usuário registrado com sucesso", "data": _auth_payload(user)}


@router.post("/login")
def login(form_data: LoginRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate_user(db, form_data.email, form_data.password)
    if not user:
        # same answer for unknown e-mail and wrong password
        logger.warning("failed login attempt")
        raise UnauthorizedError(auth_service.INVALID_CREDENTIALS)
    return {"success": True, "message": "Login realizado com sucesso", "data": _auth_payload(user)}


@router.get("/me")
def read_users_me(current_user=Depends(auth_service.get_current_user)):
    return {"success": True, "data": {"user": UserRead.model_validate(current_user)}}


@router.put("/change-password")
def change_password(payload: ChangePasswordRequest, db: Session = Depends(get_db),
                    current_user=Depends(auth_service.get_current_user)):
    auth_service.change_password(db, current_user, payload.current_password, payload.new_password)
    return {"success": True, "message": "Senha alterada com sucesso"}


@router.post('/forgot-password')
def forgot_password(payload: ForgotPasswordRequest, background_tasks: BackgroundTasks,
                    db: Session = Depends(get_db)):
    """Trigger a password reset flow.

    Security note: do NOT reveal whether the email exists. Return a generic message.
    """
    user = db.query(UserModel).filter(UserModel.email == payload.email.strip().lower()).first()
    if user:
        token = auth_service.create_reset_token(user)
        background_tasks.add_task(send_reset_email, user.email, token)
        logger.info("Password reset requested for user id=%s", user.id)

    return {"success": True, "message": "Se o e-mail estiver cadastrado, enviamos um link de recuperação."}


@router.post('/reset-password')
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.reset_password(db, payload.token, payload.password)
    return {"success": True, "message": "Senha redefinida com sucesso"}

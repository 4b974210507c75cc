from datetime import timedelta
import logging
import uuid
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from app.core.config import settings
from app.core.errors import ConflictError, ForbiddenError, UnauthorizedError, ValidationError
from app.core.timezone_utils import utcnow
from app.db.session import get_db
from app.models.user import RoleEnum, User
from app.models.cart import Cart

logger = logging.getLogger(__name__)

# Use a scheme without the 72-byte password limit as the preferred hashing algorithm.
# Keep bcrypt in the list so existing bcrypt hashes (if any) can still be verified.
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

INVALID_CREDENTIALS = "Email ou senha incorretos"
INVALID_TOKEN = "Token inválido ou expirado"


def verify_password(plain_password, hashed_password):
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # unknown/corrupted hash format
        return False


def get_password_hash(password):
    try:
        return pwd_context.hash(password)
    except ValueError as exc:
        raise ValidationError("Senha muito longa") from exc


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "jti": str(uuid.uuid4()), "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _password_fingerprint(user: User) -> str:
    # ties a reset token to the current hash, so it stops working once used
    return (user.password_hash or "")[-16:]


def create_reset_token(user: User) -> str:
    expire = utcnow() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": user.id,
        "exp": expire,
        "type": "reset",
        "pwd": _password_fingerprint(user),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def issue_token(user: User) -> str:
    role = user.role.value if hasattr(user.role, "value") else str(user.role)
    return create_access_token({"sub": user.id, "role": role})


def create_user(db: Session, email: str, password: str, name: str, phone: Optional[str] = None,
                role: RoleEnum = RoleEnum.CLIENTE) -> User:
    """Create a user and its cart in one commit."""
    email = email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("Email já cadastrado")

    user = User(email=email, password_hash=get_password_hash(password), name=name.strip(), phone=phone, role=role)
    user.cart = Cart()
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent registration of the same e-mail
        db.rollback()
        raise ConflictError("Email já cadastrado")
    db.refresh(user)
    logger.info("registered user id=%s role=%s", user.id, user.role.value)
    return user


def authenticate_user(db: Session, email: str, password: str):
    user = db.query(User).filter(User.email == (email or "").strip().lower()).first()
    if not user:
        return False
    if not verify_password(password, user.password_hash):
        return False
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Senha atual incorreta")
    user.password_hash = get_password_hash(new_password)
    db.add(user)
    db.commit()
    logger.info("password changed for user id=%s", user.id)


def reset_password(db: Session, token: str, new_password: str) -> User:
    invalid = ValidationError("Token de redefinição inválido ou expirado")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise invalid
    if payload.get("type") != "reset":
        raise invalid
    user = db.query(User).filter(User.id == payload.get("sub")).first()
    if user is None or payload.get("pwd") != _password_fingerprint(user):
        raise invalid
    user.password_hash = get_password_hash(new_password)
    db.add(user)
    db.commit()
    logger.info("password reset for user id=%s", user.id)
    return user


def ensure_admin(db: Session, email: str, password: str, name: str):
    """Create the bootstrap admin when no user owns `email` yet.

    Returns the created user, or None when the e-mail is already taken.
    """
    if not email or not password:
        return None
    if db.query(User).filter(User.email == email.strip().lower()).first():
        return None
    return create_user(db, email, password, name, role=RoleEnum.ADMIN)


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    credentials_exception = UnauthorizedError(INVALID_TOKEN)
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise credentials_exception
    user_id = payload.get("sub")
    if user_id is None or payload.get("type") != "access":
        raise credentials_exception
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise credentials_exception
    return user


def require_roles(*roles: str):
    """Return a dependency that ensures the current user has one of the provided roles.

    Usage in a route:
        @router.get('/admin/all')
        def list_all(current_user=Depends(require_roles('ADMIN'))):
            ...
    """
    def role_checker(current_user=Depends(get_current_user)):
        user_role = getattr(current_user, 'role', None)
        role_value = user_role.value if hasattr(user_role, 'value') else str(user_role)

        if role_value not in roles:
            raise ForbiddenError("Acesso negado: apenas administradores")
        return current_user

    return role_checker


require_admin = require_roles(RoleEnum.ADMIN.value)

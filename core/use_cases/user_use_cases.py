import logging
from typing import Optional
from passlib.context import CryptContext
from core.entities.user import User
from core.errors import DuplicateEmailError
from core.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def normalize_email(email: str) -> str:
    return email.strip().lower()

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)

def register_user(repo: UserRepository, name: str, email: str, password: str) -> User:
    """Create an account; the email is stored lowercased and must be unique."""
    email = normalize_email(email)
    if repo.get_by_email(email) is not None:
        raise DuplicateEmailError(email)
    user = repo.create_user(name=name.strip(), email=email, password_hash=hash_password(password))
    logger.info("user_registered user_id=%s", user.id)
    return user

def authenticate_user(repo: UserRepository, email: str, password: str) -> Optional[User]:
    user = repo.get_by_email(normalize_email(email))
    if user is None or not verify_password(password, user.password_hash):
        logger.info("login_failed")
        return None
    return user

import logging

from sqlalchemy.orm import Session

from smart_er.core.security import create_access_token, get_password_hash, verify_password
from smart_er.models.user import StaffRole, User

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    pass


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def authenticate_user(db: Session, username: str, password: str) -> User:
    """
    Authenticate a staff user by username and password.
    Inactive accounts are rejected with the same message as a bad password.
    """
    user = get_user_by_username(db, username)
    if not user or not user.is_active:
        raise AuthenticationError("Invalid username or password")

    if not verify_password(password, user.hashed_password):
        raise AuthenticationError("Invalid username or password")

    return user


def issue_access_token_for_user(user: User) -> str:
    return create_access_token(subject=str(user.id), role=user.role.value)


def ensure_user(
    db: Session,
    *,
    username: str,
    password: str,
    full_name: str,
    role: StaffRole,
) -> User:
    """
    Create the user, or reset password / name / role of an existing one
    and make it login-ready. Safe to run many times.
    """
    user = get_user_by_username(db, username)
    if user:
        user.hashed_password = get_password_hash(password)
        user.full_name = full_name
        user.role = role
        user.is_active = True
        logger.info("Updated user %s", username)
    else:
        user = User(
            username=username,
            hashed_password=get_password_hash(password),
            full_name=full_name,
            role=role,
            is_active=True,
        )
        db.add(user)
        logger.info("Created user %s", username)

    db.commit()
    db.refresh(user)
    return user

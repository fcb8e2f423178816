"""
Identity store operations: registration, login, profile edits, admin provisioning and account removal.
Emails are stored lowercase; passwords are hashed with bcrypt and rehashed only when changed.
"""
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from learnbridge.config import settings
from learnbridge.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from learnbridge.models.module import Module
from learnbridge.models.resource import Resource
from learnbridge.models.user import ROLE_ADMIN, ROLE_STUDENT, ROLES, STAFF_ROLES, User
from learnbridge.services import policy, storage
from learnbridge.services.auth import hash_password, verify_password
from learnbridge.services.policy import Action
from learnbridge.services.queries import Page, PageRequest, paginate

logger = logging.getLogger(__name__)

DUPLICATE_USER_MESSAGE = "User with this email or username already exists"
MIN_PASSWORD_LENGTH = 6


@dataclass
class NewUser:
    username: str
    email: str
    password: str
    first_name: str
    last_name: str
    phone: str | None = None
    bio: str | None = None


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _check_password(password: str | None) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password")
    return password


def _ensure_available(db: Session, username: str, email: str, exclude_id: uuid.UUID | None = None) -> None:
    q = db.query(User).filter(or_(User.email == email, User.username == username))
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(DUPLICATE_USER_MESSAGE)


def _create(db: Session, data: NewUser, role: str) -> User:
    username = (data.username or "").strip()
    email = _normalize_email(data.email)
    first_name = (data.first_name or "").strip()
    last_name = (data.last_name or "").strip()
    if not username or not email or not first_name or not last_name:
        raise ValidationError("Please provide all required fields: username, email, password, firstName, lastName")
    _check_password(data.password)
    _ensure_available(db, username, email)
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(data.password),
        role=role,
        first_name=first_name,
        last_name=last_name,
        phone=data.phone,
        bio=data.bio,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Create user IntegrityError: %s", e)
        raise ConflictError(DUPLICATE_USER_MESSAGE) from e
    db.refresh(user)
    return user


def register_user(db: Session, data: NewUser) -> User:
    """Self-registration; always a student."""
    user = _create(db, data, ROLE_STUDENT)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user


def create_staff_user(db: Session, actor: User, data: NewUser, role: str) -> User:
    """Admin provisions a resourceManager or coordinator account."""
    policy.authorize(actor, Action.MANAGE_USERS)
    if role not in STAFF_ROLES:
        raise ValidationError("Invalid role. Must be either resourceManager or coordinator", field="role")
    user = _create(db, data, role)
    logger.info("Admin %s created %s account %s", actor.id, role, user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if user is None or not verify_password(password or "", user.password_hash):
        raise AuthenticationError("Invalid email or password")
    return user


def authenticate_admin(db: Session, email: str, password: str) -> User:
    try:
        user = authenticate(db, email, password)
    except AuthenticationError:
        raise AuthenticationError("Invalid admin credentials") from None
    if user.role != ROLE_ADMIN:
        raise AuthenticationError("Invalid admin credentials")
    return user


def update_profile(db: Session, user: User, changes: dict) -> User:
    """Apply profile edits; only provided (non-None) fields change. Password is rehashed only when given."""
    changes = {k: v for k, v in changes.items() if v is not None}
    username = changes.get("username", user.username).strip()
    email = _normalize_email(changes.get("email", user.email))
    if not username or not email:
        raise ValidationError("Username and email cannot be empty")
    if username != user.username or email != user.email:
        _ensure_available(db, username, email, exclude_id=user.id)
    user.username, user.email = username, email
    for field in ("first_name", "last_name"):
        if field in changes:
            value = changes[field].strip()
            if not value:
                raise ValidationError(f"{field} cannot be empty", field=field)
            setattr(user, field, value)
    for field in ("phone", "bio"):
        if field in changes:
            setattr(user, field, changes[field])
    if "password" in changes:
        user.password_hash = hash_password(_check_password(changes["password"]))
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(DUPLICATE_USER_MESSAGE) from e
    db.refresh(user)
    return user


def get_user(db: Session, user_id: uuid.UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User")
    return user


def list_users(db: Session, actor: User, role: str | None, page_req: PageRequest) -> Page:
    policy.authorize(actor, Action.MANAGE_USERS)
    q = db.query(User)
    if role and role != "all":
        if role not in ROLES:
            raise ValidationError(f"Invalid role '{role}'", field="role")
        q = q.filter(User.role == role)
    return paginate(q.order_by(User.created_at.desc()), page_req)


def delete_user(db: Session, actor: User, user_id: uuid.UUID) -> None:
    """Remove an account with its uploads (records and files); reviews and modules it made are kept."""
    policy.authorize(actor, Action.MANAGE_USERS)
    user = get_user(db, user_id)
    if user.id == actor.id:
        raise ValidationError("You cannot delete your own account")
    # uploads go with the account (relationship cascade); their files are removed after commit
    file_urls = [r.file_url for r in user.resources]
    db.query(Resource).filter(Resource.reviewed_by == user.id).update(
        {Resource.reviewed_by: None}, synchronize_session=False
    )
    db.query(Module).filter(Module.created_by == user.id).update(
        {Module.created_by: None}, synchronize_session=False
    )
    db.delete(user)
    db.commit()
    for url in file_urls:
        storage.delete_stored_file(url)
    logger.info("Admin %s deleted user %s (%s resources removed)", actor.id, user_id, len(file_urls))


def seed_admin_account(db: Session) -> User | None:
    """Ensure the configured admin account exists (ADMIN_EMAIL + ADMIN_PASSWORD). No-op when unset."""
    email = _normalize_email(settings.admin_email)
    if not email or not settings.admin_password:
        logger.info("Admin seeding skipped: ADMIN_EMAIL/ADMIN_PASSWORD not set")
        return None
    existing = db.query(User).filter(User.email == email).first()
    if existing is not None:
        if existing.role != ROLE_ADMIN:
            logger.warning("Admin seeding: %s exists with role %s; not changed", email, existing.role)
        return existing
    user = _create(
        db,
        NewUser(
            username=settings.admin_username,
            email=email,
            password=settings.admin_password,
            first_name="System",
            last_name="Administrator",
        ),
        ROLE_ADMIN,
    )
    logger.info("Seeded admin account %s", email)
    return user

"""
User service layer for account database operations.
"""

from typing import Optional, Dict
from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, or_
from tournament_api.database.models import User, UserRole
from tournament_api.utils.datetime_utils import utcnow, isoformat_or_none
from tournament_api.utils.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
import logging

logger = logging.getLogger(__name__)

# A user counts as active when they logged in within this window
ACTIVE_USER_WINDOW_DAYS = 30


async def create_user(
    session: AsyncSession,
    username: str,
    email: str,
    password_hash: str,
    role: UserRole = UserRole.GUEST,
) -> Dict:
    """
    Create a new user account.

    Args:
        session: Database session
        username: Unique username
        email: Unique email (already normalized to lowercase)
        password_hash: Hashed password
        role: admin or guest

    Returns:
        Created user dictionary

    Raises:
        ConflictError: If the username or email is already taken
        ForbiddenError: If an admin is requested while one already exists
    """
    if role == UserRole.ADMIN and await admin_exists(session):
        raise ForbiddenError(
            "Admin account already exists - contact the existing administrator."
        )

    result = await session.execute(
        select(User.id).where(or_(User.email == email, User.username == username)).limit(1)
    )
    if result.scalar_one_or_none():
        raise ConflictError("User already exists")

    new_user = User(
        username=username,
        email=email,
        password_hash=password_hash,
        role=role,
        settings={},
    )
    session.add(new_user)
    await session.flush()
    await session.commit()
    await session.refresh(new_user)

    logger.info(f"Registered user {new_user.id} ({role.value})")
    return _user_to_dict(new_user)


async def admin_exists(session: AsyncSession) -> bool:
    """Check whether any admin account exists."""
    result = await session.execute(select(User.id).where(User.role == UserRole.ADMIN).limit(1))
    return result.scalar_one_or_none() is not None


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[Dict]:
    """
    Get user by email address.

    Args:
        session: Database session
        email: Email address (will be normalized to lowercase)

    Returns:
        User dictionary or None if not found
    """
    email = email.strip().lower() if email else None
    if not email:
        return None

    result = await session.execute(select(User).where(User.email == email).limit(1))
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[Dict]:
    """
    Get user by ID.

    Args:
        session: Database session
        user_id: User ID

    Returns:
        User dictionary or None if not found
    """
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def record_login(session: AsyncSession, user_id: int) -> None:
    """Stamp the user's last login time."""
    await session.execute(
        update(User).where(User.id == user_id).values(last_login_at=utcnow())
    )
    await session.commit()


async def update_user(
    session: AsyncSession,
    user_id: int,
    username: Optional[str] = None,
    email: Optional[str] = None,
) -> Dict:
    """
    Update a user's username and/or email.

    Raises:
        NotFoundError: If the user does not exist
        ConflictError: If the new username or email belongs to someone else
    """
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    if username is not None and username != user.username:
        taken = await session.execute(
            select(User.id).where(User.username == username, User.id != user_id)
        )
        if taken.scalar_one_or_none():
            raise ConflictError("Username is already taken")
        user.username = username

    if email is not None:
        email = email.strip().lower()
        if email != user.email:
            taken = await session.execute(
                select(User.id).where(User.email == email, User.id != user_id)
            )
            if taken.scalar_one_or_none():
                raise ConflictError("Email is already taken")
            user.email = email

    await session.commit()
    await session.refresh(user)
    return _user_to_dict(user)


async def update_user_password(session: AsyncSession, user_id: int, password_hash: str) -> bool:
    """
    Update a user's password.

    Args:
        session: Database session
        user_id: User ID
        password_hash: New hashed password

    Returns:
        True if successful, False otherwise
    """
    result = await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(password_hash=password_hash, updated_at=func.now())
    )
    await session.commit()
    return result.rowcount > 0


async def list_users(session: AsyncSession, page: int = 1, limit: int = 10) -> Dict:
    """
    List users one page at a time, newest first.

    Returns:
        Dict with users (no password hashes), current_page, total_pages, total_users
    """
    total = (await session.execute(select(func.count(User.id)))).scalar_one()
    result = await session.execute(
        select(User).order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit)
    )
    users = [public_user(_user_to_dict(u)) for u in result.scalars().all()]
    return {
        "users": users,
        "current_page": page,
        "total_pages": (total + limit - 1) // limit,
        "total_users": total,
    }


async def get_user_stats(session: AsyncSession) -> Dict:
    """Account totals for the admin dashboard."""
    now = utcnow()

    async def _count(*conditions) -> int:
        result = await session.execute(select(func.count(User.id)).where(*conditions))
        return result.scalar_one()

    return {
        "total_users": await _count(),
        "total_admins": await _count(User.role == UserRole.ADMIN),
        "active_users": await _count(
            User.last_login_at >= now - timedelta(days=ACTIVE_USER_WINDOW_DAYS)
        ),
        "user_growth": {
            "last_30_days": await _count(User.created_at >= now - timedelta(days=30)),
            "last_7_days": await _count(User.created_at >= now - timedelta(days=7)),
        },
    }


async def update_user_role(session: AsyncSession, user_id: int, role: UserRole) -> Dict:
    """
    Change a user's role.

    Raises:
        NotFoundError: If the user does not exist
    """
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    user.role = role
    await session.commit()
    await session.refresh(user)
    logger.info(f"User {user_id} role set to {role.value}")
    return public_user(_user_to_dict(user))


async def delete_user(session: AsyncSession, user_id: int, acting_user_id: int) -> None:
    """
    Delete a user account.

    Raises:
        ValidationError: If an admin tries to delete their own account
        NotFoundError: If the user does not exist
    """
    if user_id == acting_user_id:
        raise ValidationError("Cannot delete your own account")
    result = await session.execute(delete(User).where(User.id == user_id))
    if result.rowcount == 0:
        raise NotFoundError("User not found")
    await session.commit()
    logger.info(f"User {user_id} deleted by {acting_user_id}")


async def get_user_settings(session: AsyncSession, user_id: int) -> Dict:
    """Raw settings document of a user."""
    result = await session.execute(select(User.settings).where(User.id == user_id))
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("User not found")
    return dict(row[0] or {})


async def save_user_settings(session: AsyncSession, user_id: int, settings: Dict) -> None:
    """Replace a user's settings document."""
    result = await session.execute(
        update(User).where(User.id == user_id).values(settings=settings, updated_at=func.now())
    )
    if result.rowcount == 0:
        raise NotFoundError("User not found")
    await session.commit()


def public_user(user: Dict) -> Dict:
    """Strip secrets from a user dictionary before it leaves the API."""
    return {k: v for k, v in user.items() if k != "password_hash"}


def _user_to_dict(user: User) -> Dict:
    """
    Convert a User ORM instance to a dictionary.

    Args:
        user: User ORM instance

    Returns:
        User dictionary
    """
    role = user.role.value if isinstance(user.role, UserRole) else user.role
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "password_hash": user.password_hash,
        "role": role,
        "last_login_at": isoformat_or_none(user.last_login_at),
        "created_at": isoformat_or_none(user.created_at),
        "updated_at": isoformat_or_none(user.updated_at),
    }

"""Administration API endpoints (users and site settings)"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.config import settings
from app.database import get_db, transaction
from app.exceptions import ConflictError, NotFoundError
from app.models.reservation import Reservation
from app.models.user import User, UserRole
from app.schemas.auth import UserCreate, UserResponse, UserUpdate
from app.schemas.settings import SiteSettings, SiteSettingsResponse, SiteSettingsUpdate
from app.api.auth import get_password_hash, require_roles
from app.services import settings_store

router = APIRouter()
logger = structlog.get_logger()

require_admin = require_roles(UserRole.ADMIN)


async def _get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    skip: int = 0,
    limit: int = 100,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List users by employee number"""
    result = await db.execute(
        select(User).order_by(User.matricule).offset(skip).limit(limit)
    )
    return result.scalars().all()


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a user; without a password the configured default is used"""
    existing = await db.execute(select(User.id).where(User.matricule == user_data.matricule))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Matricule already exists", error_code="MatriculeTaken")

    data = user_data.model_dump(exclude={"password"})
    user = User(
        **data,
        hashed_password=get_password_hash(user_data.password or settings.default_user_password),
    )
    try:
        async with transaction(db):
            db.add(user)
            await db.flush()
    except IntegrityError:
        raise ConflictError("Matricule already exists", error_code="MatriculeTaken")
    await db.refresh(user)

    logger.info("User created", user_id=user.id, role=user.role.value)
    return user


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Update a user; ``password`` resets the password"""
    async with transaction(db):
        user = await _get_user(db, user_id)
        update_data = user_data.model_dump(exclude_unset=True)
        password = update_data.pop("password", None)
        if password:
            user.hashed_password = get_password_hash(password)
        for field, value in update_data.items():
            if value is not None:
                setattr(user, field, value)
    await db.refresh(user)

    logger.info("User updated", user_id=user_id, fields=sorted(user_data.model_fields_set))
    return user


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a user without reservation history"""
    async with transaction(db):
        user = await _get_user(db, user_id)
        result = await db.execute(
            select(func.count(Reservation.id)).where(Reservation.user_id == user_id)
        )
        if result.scalar_one():
            raise ConflictError("User has reservations; deactivate instead", error_code="UserHasReservations")
        await db.delete(user)

    logger.info("User deleted", user_id=user_id)


@router.get("/settings", response_model=SiteSettingsResponse)
async def get_site_settings(
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Effective site settings"""
    values = await settings_store.read_all(db)
    return SiteSettingsResponse(settings=SiteSettings(**values), timezone=settings.timezone)


@router.put("/settings", response_model=SiteSettingsResponse)
async def update_site_settings(
    update: SiteSettingsUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Update cut-off, cancellation deadline or hero image"""
    async with transaction(db):
        await settings_store.update(
            db,
            cutoff_time=update.cutoff_time,
            allow_cancel_until=update.allow_cancel_until,
            hero_image_url=update.hero_image_url,
        )
    values = await settings_store.read_all(db)
    return SiteSettingsResponse(settings=SiteSettings(**values), timezone=settings.timezone)

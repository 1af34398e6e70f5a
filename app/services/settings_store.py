"""Persisted key/value site settings with configuration defaults

Values are read from the ``settings`` table on every call so that several
API instances sharing one database never act on stale configuration.
"""

from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.config import settings
from app.exceptions import InvalidInputError
from app.models.setting import Setting
from app.services.policy import is_hhmm

logger = structlog.get_logger()

CUTOFF_TIME = "cutoff_time"
ALLOW_CANCEL_UNTIL = "allow_cancel_until"
HERO_IMAGE_URL = "hero_image_url"


def defaults() -> Dict[str, str]:
    return {
        CUTOFF_TIME: settings.cutoff_time,
        ALLOW_CANCEL_UNTIL: settings.allow_cancel_until,
        HERO_IMAGE_URL: settings.hero_image_url,
    }


async def get_setting(db: AsyncSession, key: str) -> Optional[str]:
    """Return the stored value for ``key`` or its configured default"""
    result = await db.execute(select(Setting.value).where(Setting.key == key))
    value = result.scalar_one_or_none()
    return value or defaults().get(key)


async def get_cutoff_time(db: AsyncSession) -> str:
    return await get_setting(db, CUTOFF_TIME)


async def get_cancel_deadline(db: AsyncSession) -> str:
    return await get_setting(db, ALLOW_CANCEL_UNTIL)


def absolutize(path: Optional[str]) -> Optional[str]:
    """Prefix relative image paths with the public base URL"""
    if not path or path.lower().startswith(("http://", "https://")):
        return path
    base = settings.public_base_url.rstrip("/")
    return f"{base}{path if path.startswith('/') else '/' + path}"


def is_image_ref(value: str) -> bool:
    return value.lower().startswith(("http://", "https://")) or value.startswith("/uploads/")


async def read_all(db: AsyncSession) -> Dict[str, Optional[str]]:
    """All known settings, defaults applied, hero image absolutized"""
    result = await db.execute(select(Setting.key, Setting.value))
    stored = {key: value for key, value in result.all()}

    values = {key: stored.get(key) or default for key, default in defaults().items()}
    values[HERO_IMAGE_URL] = absolutize(values[HERO_IMAGE_URL])
    return values


async def _upsert(db: AsyncSession, key: str, value: str) -> None:
    result = await db.execute(select(Setting).where(Setting.key == key))
    row = result.scalar_one_or_none()
    if row is None:
        db.add(Setting(key=key, value=value))
    else:
        row.value = value


async def update(
    db: AsyncSession,
    cutoff_time: Optional[str] = None,
    allow_cancel_until: Optional[str] = None,
    hero_image_url: Optional[str] = None,
) -> None:
    """
    Validate and upsert the provided settings. ``None`` leaves a key
    untouched; an empty hero image resets it to the default.

    The caller owns the transaction.
    """
    if cutoff_time is not None and not is_hhmm(cutoff_time):
        raise InvalidInputError("cutoff_time must be HH:MM")
    if allow_cancel_until is not None and not is_hhmm(allow_cancel_until):
        raise InvalidInputError("allow_cancel_until must be HH:MM")
    if hero_image_url and not is_image_ref(hero_image_url):
        raise InvalidInputError("hero_image_url must be an http(s) URL or an /uploads/... path")

    if cutoff_time is not None:
        await _upsert(db, CUTOFF_TIME, cutoff_time)
    if allow_cancel_until is not None:
        await _upsert(db, ALLOW_CANCEL_UNTIL, allow_cancel_until)
    if hero_image_url is not None:
        await _upsert(db, HERO_IMAGE_URL, hero_image_url or settings.hero_image_url)

    logger.info(
        "Settings updated",
        cutoff_time=cutoff_time,
        allow_cancel_until=allow_cancel_until,
        hero_image_url=hero_image_url,
    )

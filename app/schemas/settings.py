"""Site settings schemas"""

from typing import Optional
from pydantic import BaseModel


class SiteSettings(BaseModel):
    """Effective site settings"""
    cutoff_time: str
    allow_cancel_until: str
    hero_image_url: Optional[str]


class SiteSettingsResponse(BaseModel):
    settings: SiteSettings
    timezone: str


class SiteSettingsUpdate(BaseModel):
    """Partial settings update; omitted keys are unchanged"""
    cutoff_time: Optional[str] = None
    allow_cancel_until: Optional[str] = None
    hero_image_url: Optional[str] = None

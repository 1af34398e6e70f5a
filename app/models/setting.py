"""Site settings model"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Text

from app.database import Base


class Setting(Base):
    """Key/value site settings (cutoff time, cancellation deadline, hero image)"""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

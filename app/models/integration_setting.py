from sqlalchemy import Column, String, Boolean, Text
from .base import BaseModel


class IntegrationSetting(BaseModel):
    __tablename__ = 'integration_settings'

    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(Text, nullable=False)
    is_encrypted = Column(Boolean, default=False, nullable=False)
    updated_by = Column(String(255))

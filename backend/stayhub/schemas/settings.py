"""
StayHub Backend: User Settings Schemas
=======================================

What:  The canonical settings record returned by /api/settings and the
       partial body accepted by PUT.

The record is always complete: the settings service reconciles stored
values over defaults before building it, so every nested field is present.
The update body is the same shape with every field optional.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from stayhub.schemas.common import CamelModel


# ══════════════════════════════════════════════════════════════════════════
# Complete record (responses)
# ══════════════════════════════════════════════════════════════════════════


class NotificationSettings(BaseModel):
    email: bool
    push: bool
    sms: bool
    marketing: bool


class PrivacySettings(CamelModel):
    profile_visibility: str = Field(alias="profileVisibility")
    activity_visibility: str = Field(alias="activityVisibility")


class SecuritySettings(CamelModel):
    two_factor_auth: bool = Field(alias="twoFactorAuth")
    last_password_change: Optional[str] = Field(default=None, alias="lastPasswordChange")


class PreferenceSettings(CamelModel):
    currency: str
    dark_mode: bool = Field(alias="darkMode")
    language: str
    timezone: str


class SettingsRecord(BaseModel):
    id: Optional[uuid.UUID] = None
    user_id: uuid.UUID
    notifications: NotificationSettings
    privacy: PrivacySettings
    security: SecuritySettings
    preferences: PreferenceSettings
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ══════════════════════════════════════════════════════════════════════════
# Partial update (request body)
# ══════════════════════════════════════════════════════════════════════════


class NotificationSettingsPatch(BaseModel):
    email: Optional[bool] = None
    push: Optional[bool] = None
    sms: Optional[bool] = None
    marketing: Optional[bool] = None


class PrivacySettingsPatch(CamelModel):
    profile_visibility: Optional[str] = Field(default=None, alias="profileVisibility")
    activity_visibility: Optional[str] = Field(default=None, alias="activityVisibility")


class SecuritySettingsPatch(CamelModel):
    two_factor_auth: Optional[bool] = Field(default=None, alias="twoFactorAuth")
    last_password_change: Optional[str] = Field(default=None, alias="lastPasswordChange")


class PreferenceSettingsPatch(CamelModel):
    currency: Optional[str] = Field(default=None, max_length=10)
    dark_mode: Optional[bool] = Field(default=None, alias="darkMode")
    language: Optional[str] = Field(default=None, max_length=10)
    timezone: Optional[str] = Field(default=None, max_length=64)


class SettingsUpdateRequest(BaseModel):
    notifications: Optional[NotificationSettingsPatch] = None
    privacy: Optional[PrivacySettingsPatch] = None
    security: Optional[SecuritySettingsPatch] = None
    preferences: Optional[PreferenceSettingsPatch] = None

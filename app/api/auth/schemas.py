"""Pydantic schemas for the auth API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AuthUrl(BaseModel):
    auth_url: str


class ConnectedAccount(BaseModel):
    user_id: str
    spotify_id: str
    display_name: Optional[str] = None


class AuthStatus(BaseModel):
    authenticated: bool
    reason: Optional[str] = None
    expired: Optional[bool] = None
    expires_at: Optional[datetime] = None

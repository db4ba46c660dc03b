from datetime import datetime

from pydantic import BaseModel


class AuthToken(BaseModel):
    """Signed login token and the instant it stops being accepted."""
    token: str
    expires_at: datetime


class Identity(BaseModel):
    """Claims carried by a verified token."""
    subject: str
    admin: bool
    expires_at: datetime

"""
User and session models
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.serialization import parse_datetime


@dataclass
class User:
    id: str
    email: str
    username: str
    created_at: Optional[datetime] = None
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> 'User':
        return cls(
            id=str(data.get('id') or ''),
            email=str(data.get('email') or ''),
            username=str(data.get('username') or ''),
            created_at=parse_datetime(data.get('created_at')),
            is_active=bool(data.get('is_active', True)),
        )


@dataclass
class AuthSession:
    """Login/register response: the user plus an opaque session token"""
    user: User
    session_token: str

    @classmethod
    def from_dict(cls, data: dict) -> 'AuthSession':
        return cls(
            user=User.from_dict(data.get('user') or {}),
            session_token=str(data.get('session_token') or ''),
        )

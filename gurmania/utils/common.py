"""
Common utility functions used across multiple routes.
"""

from datetime import datetime
from typing import Optional

from gurmania.models.models import User


def iso_format(dt: Optional[datetime]) -> Optional[str]:
    """Format a naive UTC datetime as ISO string with Z suffix."""
    if dt is None:
        return None
    return dt.isoformat() + "Z"


def display_name(user: User) -> str:
    """Name, then preferences name, then the email prefix."""
    if isinstance(user.name, str) and user.name.strip():
        return user.name.strip()
    prefs = user.preferences or {}
    name = prefs.get("name") if isinstance(prefs, dict) else None
    if isinstance(name, str) and name.strip():
        return name.strip()
    return user.email.split("@", 1)[0]


def progress_percentage(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(completed / total * 100, 1)

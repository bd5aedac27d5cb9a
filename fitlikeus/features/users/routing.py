"""Role-based landing pages.

Admins land on the admin dashboard, clients on their own dashboard, and
anonymous visitors stay on the public pages.
"""

from typing import Optional

from fitlikeus.models.user import UserProfile

ROLE_HOME = {
    "admin": "/admin/dashboard",
    "client": "/dashboard",
}

PUBLIC_PATHS = ("/", "/login", "/signup", "/forgot-password", "/reset-password")


def landing_path(profile: Optional[UserProfile]) -> Optional[str]:
    if profile is None:
        return None
    return ROLE_HOME.get(profile.role)


def can_access(profile: Optional[UserProfile], path: str) -> bool:
    """Whether a page path is reachable for the given profile."""
    if path in PUBLIC_PATHS:
        return True
    if profile is None:
        return False
    if path.startswith("/admin"):
        return profile.role == "admin"
    return profile.role == "client"

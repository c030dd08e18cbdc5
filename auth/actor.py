"""
The authenticated caller, as seen by services.
"""

from dataclasses import dataclass
from typing import Optional

from security.policy.permissions import Role


@dataclass(frozen=True)
class Actor:
    """Represents the authenticated user's identity and role."""
    user_id: str
    role: Role
    email: Optional[str] = None
    client_id: Optional[str] = None  # set for client-portal users

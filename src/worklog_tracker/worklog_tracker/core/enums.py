from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    DEVELOPER = "DEVELOPER"


class UserStatus(str, Enum):
    INVITED = "invited"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class AuthMethod(str, Enum):
    PASSWORD = "password"
    ATLASSIAN = "atlassian"


class PresenceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"


class Mood(str, Enum):
    HAPPY = "happy"
    EXCITED = "excited"
    FOCUSED = "focused"
    ENERGETIC = "energetic"
    MOTIVATED = "motivated"
    SICK = "sick"
    TIRED = "tired"
    PRESENT = "present"


class CheckInType(str, Enum):
    """Where a check-in falls relative to the organization window."""

    EARLY = "early"
    ON_TIME = "on-time"
    LATE = "late"

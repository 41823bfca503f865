# db/enums.py
import enum

class UserRole(enum.StrEnum):
    USER = "ROLE_USER"
    JUDGE = "ROLE_JUDGE"
    TEAM_LEADER = "ROLE_TEAM_LEADER"
    MEMBER = "ROLE_MEMBER"
    ADMIN = "ROLE_ADMIN"

class Track(enum.StrEnum):
    SOFTWARE = "Software"
    HARDWARE = "Hardware"

class TeamStatus(enum.StrEnum):
    VERIFIED = "Verified"
    UNVERIFIED = "Unverified"

class ArrivalState(enum.StrEnum):
    PENDING = "Pending"
    CHECKED_IN = "Checked In"

class InvitationStatus(enum.StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"

TEAM_ROLES = frozenset({UserRole.TEAM_LEADER, UserRole.MEMBER})

from scopeguard.schemas.profile import UserProfile

__all__ = ["UserProfile"]

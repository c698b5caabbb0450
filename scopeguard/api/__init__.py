from scopeguard.api.dependencies import get_current_profile, get_db, require_permissions, with_data_scope

__all__ = ["get_current_profile", "get_db", "require_permissions", "with_data_scope"]

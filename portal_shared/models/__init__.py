from portal_shared.models.user import CurrentSession

__all__ = ["CurrentSession"]

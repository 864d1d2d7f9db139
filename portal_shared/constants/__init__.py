from portal_shared.constants.roles import Role

__all__ = ["Role"]

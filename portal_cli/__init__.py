from portal_cli.exceptions import DuplicateKeyError, PortalError
from portal_cli.portal import Portal

__all__ = ["DuplicateKeyError", "Portal", "PortalError"]

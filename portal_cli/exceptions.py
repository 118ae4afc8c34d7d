class PortalError(Exception):
    """Base class for errors the portal data layer raises to its callers."""


class DuplicateKeyError(PortalError, ValueError):
    """A unique field (username, matric number, course code) is already taken."""

    def __init__(self, field: str, value: object, message: str):
        super().__init__(message)
        self.field = field
        self.value = value

"""
Exceptions raised by the policy layer for invalid input.

Authorization denials are never exceptions; they are plain ``False`` results.
"""


class PolicyInputError(ValueError):
    """Base class for role/permission values the catalog does not know."""


class UnknownRoleError(PolicyInputError):
    """Raised when a role value is not part of the role catalog."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown role: {value!r}")


class UnknownPermissionError(PolicyInputError):
    """Raised when a permission value is not part of the permission catalog."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown permission: {value!r}")

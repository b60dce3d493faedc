"""Exceptions raised by Infuser."""


class InfuserError(Exception):
    """Base class for all Infuser errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoEligibleClientError(InfuserError):
    """Every priority tier was exhausted without a qualifying client."""

    def __init__(self, message: str = "no eligible client found"):
        super().__init__(message)


class MissingIdentityError(InfuserError):
    """A client without a persisted id was used where an id is required."""

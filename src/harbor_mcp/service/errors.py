"""Service error taxonomy.

Three kinds of failure leave the service layer:
- InvalidParameterError: a required input is missing or empty
- ResourceNotFoundError: a project, tag or chart version does not exist
- HarborServiceError: anything else (registry/transport failure, broken invariant)

The tool layer maps these onto protocol error codes; nothing here knows
about the protocol.
"""

from typing import Optional


class HarborServiceError(Exception):
    """Exception raised when a registry operation fails."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class InvalidParameterError(HarborServiceError):
    """Exception raised when a required parameter is missing or empty."""

    pass


class ResourceNotFoundError(HarborServiceError):
    """Exception raised when a requested resource does not exist."""

    pass

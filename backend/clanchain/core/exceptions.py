"""
Domain exceptions mapped to HTTP status codes at the API boundary
"""
from fastapi import status


class ClanChainError(Exception):
    """Base error; rendered as {"error": message}"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ClanChainError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ClanChainError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(ClanChainError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ClanChainError):
    status_code = status.HTTP_404_NOT_FOUND


class MethodNotAllowedError(ClanChainError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message)


class ConflictError(ClanChainError):
    """Invalid state transition or a mutation that would break an invariant"""
    status_code = status.HTTP_409_CONFLICT


class ServiceUnavailableError(ClanChainError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

# wtt/utils/exceptions.py
"""Custom exceptions for the wtt hierarchy store"""


class WttException(Exception):
    """Base exception for wtt"""

    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class ValidationError(WttException):
    """Missing required field or client-supplied id"""
    def __init__(self, message: str):
        super().__init__(message, "VALIDATION_ERROR", 400)


class NotFoundError(WttException):
    """Referenced id does not exist"""
    def __init__(self, message: str):
        super().__init__(message, "NOT_FOUND", 404)


class DuplicateError(WttException):
    """Id (or attached resource) already present"""
    def __init__(self, message: str):
        super().__init__(message, "DUPLICATE", 409)


class InternalConsistencyError(WttException):
    """Index and tree have diverged (orphan or missing index entry)"""
    def __init__(self, message: str):
        super().__init__(message, "INTERNAL_CONSISTENCY", 500)


class ExternalServiceError(WttException):
    """External resource service failed or is unreachable"""
    def __init__(self, message: str):
        super().__init__(message, "EXTERNAL_SERVICE_ERROR", 502)


class PersistenceError(WttException):
    """Snapshot file could not be read or parsed"""
    def __init__(self, message: str):
        super().__init__(message, "PERSISTENCE_ERROR", 500)

from __future__ import annotations


class GameError(Exception):
    """Base for every error a service raises on purpose. Mapped to HTTP in main.py."""
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(GameError):
    status_code = 404


class InvalidState(GameError):
    status_code = 409


class LicenseError(GameError):
    status_code = 400


class InvalidCode(LicenseError):
    pass


class CodeAlreadyUsed(LicenseError):
    status_code = 409


class ProcessingError(GameError):
    status_code = 422


class UploadError(GameError):
    status_code = 502


class ConcurrencyConflict(GameError):
    status_code = 409

"""
Advisor Errors

Typed errors for the course advisor and the mapping from raw collaborator
failures (OpenAI, prediction service) to localized user-facing messages.
"""

from enum import Enum

import openai
import requests


class ErrorKind(Enum):
    API_KEY = "api_key"
    QUOTA = "quota"
    NETWORK = "network"
    GENERIC = "generic"


USER_MESSAGES = {
    ErrorKind.API_KEY: "שגיאת מפתח API. אנא בדוק את הגדרות ה-API.",
    ErrorKind.QUOTA: "חריגה ממכסת API. אנא בדוק את מגבלות השימוש שלך.",
    ErrorKind.NETWORK: "שגיאת רשת. אנא בדוק את החיבור לאינטרנט ונסה שוב.",
    ErrorKind.GENERIC: "נכשל ביצירת תגובה. אנא נסה שוב.",
}


class AdvisorError(Exception):
    """Base class for course advisor errors."""


class ConfigurationError(AdvisorError, ValueError):
    """Missing or placeholder credentials; the advisor cannot start."""


class CollaboratorError(AdvisorError):
    """A ranking or generative-text call failed for this turn."""

    kind = ErrorKind.GENERIC

    def __init__(self, message: str = "", cause: Exception = None):
        super().__init__(message or USER_MESSAGES[self.kind])
        self.cause = cause

    @property
    def user_message(self) -> str:
        return USER_MESSAGES[self.kind]


class ApiKeyError(CollaboratorError):
    kind = ErrorKind.API_KEY


class QuotaExceededError(CollaboratorError):
    kind = ErrorKind.QUOTA


class CollaboratorNetworkError(CollaboratorError):
    kind = ErrorKind.NETWORK


class GenericCollaboratorError(CollaboratorError):
    kind = ErrorKind.GENERIC


class PredictionServiceError(GenericCollaboratorError):
    """The ranking service answered with something that is not a course list."""


_NETWORK_EXCEPTIONS = (
    openai.APIConnectionError,
    requests.ConnectionError,
    requests.Timeout,
    ConnectionError,
    TimeoutError,
)


def classify_collaborator_error(error: Exception) -> CollaboratorError:
    """
    Map a raw collaborator exception to a typed CollaboratorError.

    Typed SDK exceptions are checked first, then the message text
    ("API key", "quota", "network"/"fetch") for errors raised without a
    specific type.
    """
    if isinstance(error, CollaboratorError):
        return error

    message = str(error)
    lowered = message.lower()

    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)) or "api key" in lowered:
        return ApiKeyError(message, cause=error)
    if isinstance(error, openai.RateLimitError) or "quota" in lowered:
        return QuotaExceededError(message, cause=error)
    if isinstance(error, _NETWORK_EXCEPTIONS) or "network" in lowered or "fetch" in lowered:
        return CollaboratorNetworkError(message, cause=error)
    return GenericCollaboratorError(message, cause=error)

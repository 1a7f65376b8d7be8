"""
Unit Tests for Advisor Errors

Tests mapping of collaborator failures to localized messages.
"""

import pytest
import sys
import os

import httpx
import openai
import requests

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "teacher_course_advisor", "src"))

from teacher_course_advisor.errors import (
    USER_MESSAGES,
    ApiKeyError,
    CollaboratorNetworkError,
    ConfigurationError,
    ErrorKind,
    GenericCollaboratorError,
    PredictionServiceError,
    QuotaExceededError,
    classify_collaborator_error,
)

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class TestClassifyCollaboratorError:
    """Test suite for classify_collaborator_error."""

    def test_api_key_by_message(self):
        error = classify_collaborator_error(Exception("Invalid API key provided"))
        assert isinstance(error, ApiKeyError)
        assert error.user_message == USER_MESSAGES[ErrorKind.API_KEY]

    def test_api_key_by_type(self):
        raw = openai.AuthenticationError(
            "Unauthorized",
            response=httpx.Response(401, request=REQUEST),
            body=None,
        )
        assert isinstance(classify_collaborator_error(raw), ApiKeyError)

    def test_quota_by_message(self):
        error = classify_collaborator_error(Exception("You exceeded your current quota"))
        assert isinstance(error, QuotaExceededError)
        assert error.kind == ErrorKind.QUOTA

    def test_quota_by_type(self):
        raw = openai.RateLimitError(
            "Too many requests",
            response=httpx.Response(429, request=REQUEST),
            body=None,
        )
        assert isinstance(classify_collaborator_error(raw), QuotaExceededError)

    @pytest.mark.parametrize("raw", [
        requests.ConnectionError("connection refused"),
        requests.Timeout("read timed out"),
        TimeoutError(),
        Exception("Failed to fetch"),
        Exception("network unreachable"),
    ])
    def test_network(self, raw):
        error = classify_collaborator_error(raw)
        assert isinstance(error, CollaboratorNetworkError)
        assert error.user_message == "שגיאת רשת. אנא בדוק את החיבור לאינטרנט ונסה שוב."

    def test_openai_connection_error(self):
        raw = openai.APIConnectionError(request=REQUEST)
        assert isinstance(classify_collaborator_error(raw), CollaboratorNetworkError)

    def test_generic(self):
        error = classify_collaborator_error(ValueError("unexpected"))
        assert isinstance(error, GenericCollaboratorError)
        assert error.user_message == "נכשל ביצירת תגובה. אנא נסה שוב."
        assert isinstance(error.cause, ValueError)

    def test_typed_error_passes_through(self):
        original = PredictionServiceError("bad body")
        assert classify_collaborator_error(original) is original
        assert original.kind == ErrorKind.GENERIC

    def test_api_key_checked_before_network(self):
        error = classify_collaborator_error(Exception("network call rejected: bad API key"))
        assert isinstance(error, ApiKeyError)

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)

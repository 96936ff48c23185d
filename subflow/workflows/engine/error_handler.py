"""
Error classification for plugin execution

Turns any exception raised along a plugin invocation into a structured
``ErrorContext`` for logging. Classification never changes what is raised:
callers log the context and re-raise the original exception.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from subflow.workflows.engine.errors import (
    DispatchFailureError,
    MalformedIdentifierError,
    PluginHasNoInputError,
    PluginNestingError,
    PluginNotFoundError,
    PluginUnauthorizedError,
    UnknownNodeTypeError,
)

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    """Classification of errors for handling decisions."""
    VALIDATION_ERROR = "validation_error"
    PERMISSION_DENIED = "permission_denied"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFIGURATION_ERROR = "configuration_error"
    RECURSION_LIMIT = "recursion_limit"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    RATE_LIMITED = "rate_limited"
    EXTERNAL_SERVICE_ERROR = "external_service_error"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Structured error information for logging and decisions."""
    category: ErrorCategory
    message: str
    original_error: str
    is_retryable: bool
    suggestion: Optional[str] = None
    plugin_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "message": self.message,
            "original_error": self.original_error,
            "is_retryable": self.is_retryable,
            "suggestion": self.suggestion,
            "plugin_id": self.plugin_id,
        }


class ErrorClassifier:
    """Classifies errors raised while running a plugin."""

    # Most specific first: PluginNestingError before its PluginError siblings
    TYPE_CATEGORIES = (
        (MalformedIdentifierError, ErrorCategory.VALIDATION_ERROR),
        (PluginUnauthorizedError, ErrorCategory.PERMISSION_DENIED),
        (PluginNotFoundError, ErrorCategory.RESOURCE_NOT_FOUND),
        (PluginHasNoInputError, ErrorCategory.CONFIGURATION_ERROR),
        (UnknownNodeTypeError, ErrorCategory.CONFIGURATION_ERROR),
        (PluginNestingError, ErrorCategory.RECURSION_LIMIT),
    )

    # Fallback patterns, applied to the message of anything else
    PATTERNS = {
        ErrorCategory.TIMEOUT: ["timeout", "timed out", "deadline exceeded"],
        ErrorCategory.RATE_LIMITED: ["rate limit", "too many requests", "429", "quota exceeded"],
        ErrorCategory.NETWORK_ERROR: [
            "connection refused", "connection reset", "network unreachable", "dns", "ssl"
        ],
        ErrorCategory.EXTERNAL_SERVICE_ERROR: [
            "500", "502", "503", "504", "internal server error", "service unavailable"
        ],
    }

    # Categories that a caller could sensibly retry; this layer itself never does
    RETRYABLE_CATEGORIES = {
        ErrorCategory.RATE_LIMITED,
        ErrorCategory.NETWORK_ERROR,
        ErrorCategory.TIMEOUT,
        ErrorCategory.EXTERNAL_SERVICE_ERROR,
    }

    SUGGESTIONS = {
        ErrorCategory.VALIDATION_ERROR: "Check the plugin id of the node.",
        ErrorCategory.PERMISSION_DENIED: "Ask the plugin owner to share it with your team.",
        ErrorCategory.RESOURCE_NOT_FOUND: "The plugin may have been deleted. Pick another plugin.",
        ErrorCategory.CONFIGURATION_ERROR: "Open the plugin and fix its graph (it needs an input node).",
        ErrorCategory.RECURSION_LIMIT: "Plugins call each other too deeply or in a loop. Break the chain.",
        ErrorCategory.TIMEOUT: "A node inside the plugin took too long.",
        ErrorCategory.RATE_LIMITED: "Wait a moment and try again.",
        ErrorCategory.NETWORK_ERROR: "Check the network connection of the services the plugin calls.",
        ErrorCategory.EXTERNAL_SERVICE_ERROR: "A service the plugin calls is having issues. Try again later.",
        ErrorCategory.UNKNOWN: "An unexpected error occurred. Check the logs for details.",
    }

    MESSAGES = {
        ErrorCategory.VALIDATION_ERROR: "Invalid plugin id",
        ErrorCategory.PERMISSION_DENIED: "No permission to use this plugin",
        ErrorCategory.RESOURCE_NOT_FOUND: "Plugin not found",
        ErrorCategory.CONFIGURATION_ERROR: "Plugin is misconfigured",
        ErrorCategory.RECURSION_LIMIT: "Plugin nesting limit reached",
        ErrorCategory.TIMEOUT: "Plugin run timed out",
        ErrorCategory.RATE_LIMITED: "Rate limit exceeded",
        ErrorCategory.NETWORK_ERROR: "Network connection failed",
        ErrorCategory.EXTERNAL_SERVICE_ERROR: "External service error",
        ErrorCategory.UNKNOWN: "Plugin run failed",
    }

    @classmethod
    def classify(cls, error: BaseException) -> ErrorContext:
        """Classify an error and return structured context."""
        original_error = str(error)
        category = cls._category_for(error)

        return ErrorContext(
            category=category,
            message=cls.MESSAGES.get(category, "Error occurred"),
            original_error=original_error,
            is_retryable=category in cls.RETRYABLE_CATEGORIES,
            suggestion=cls.SUGGESTIONS.get(category),
            plugin_id=getattr(error, "plugin_id", None),
        )

    @classmethod
    def _category_for(cls, error: BaseException) -> ErrorCategory:
        for error_type, category in cls.TYPE_CATEGORIES:
            if isinstance(error, error_type):
                return category

        # Dispatch failures are classified by what went wrong underneath
        if isinstance(error, DispatchFailureError) and error.__cause__ is not None:
            error_str = f"{error} {error.__cause__!r}".lower()
        else:
            error_str = str(error).lower()
        if isinstance(error, TimeoutError) or isinstance(error.__cause__, TimeoutError):
            return ErrorCategory.TIMEOUT

        for category, patterns in cls.PATTERNS.items():
            if any(pattern in error_str for pattern in patterns):
                return category
        return ErrorCategory.UNKNOWN

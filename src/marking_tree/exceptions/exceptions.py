"""
Engine exceptions with error codes and metadata.

Every failure the engine surfaces is an ``EngineError``. Store-specific
exceptions never escape ``get_nodes``; they are wrapped in
``StoreExecutionError`` with the original chained.
"""

from typing import Any, Dict, Optional
from datetime import datetime, timezone

from marking_types.errors import ErrorDebugInfo, ErrorResponse


class EngineError(Exception):
    """
    Base exception class for all engine exceptions.

    Provides:
    - Unique error codes from registry
    - Structured error responses
    - Context metadata for logging and debugging
    """

    error_code: str = "ENG_001"

    def __init__(
        self,
        detail: Any = None,
        context: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        """
        Initialize exception with error code and metadata.

        Args:
            detail: Additional detail message (overrides registry message if provided)
            context: Additional context for debugging
            user_id: User ID if available
            error_code: Override for the class's error code
        """
        if error_code is not None:
            self.error_code = error_code
        self.detail = detail
        self.context = context or {}
        self.user_id = user_id
        super().__init__(detail if isinstance(detail, str) else self.error_code)

    @property
    def http_status(self) -> int:
        from marking_tree.exceptions.error_registry import get_error_definition
        return get_error_definition(self.error_code).http_status

    def to_error_response(self, include_debug: bool = False) -> ErrorResponse:
        """
        Convert exception to structured ErrorResponse.

        Args:
            include_debug: Whether to include debug information (dev mode only)

        Returns:
            ErrorResponse with error code, message, and optional debug info
        """
        from marking_tree.exceptions.error_registry import get_error_definition

        error_def = get_error_definition(self.error_code)

        debug_info = None
        if include_debug:
            debug_info = ErrorDebugInfo(
                timestamp=datetime.now(timezone.utc).isoformat(),
                user_id=self.user_id,
                additional_context=self.context,
            )

        message = error_def.message.plain
        if isinstance(self.detail, str) and self.detail:
            message = self.detail

        return ErrorResponse(
            error_code=self.error_code,
            message=message,
            details=self.context or None,
            severity=error_def.severity,
            category=error_def.category,
            debug=debug_info,
        )


# ============================================================================
# NAVIGATION EXCEPTIONS
# ============================================================================


class InvalidPath(EngineError):
    """The path breaks the hierarchy, or no selected source supports the next dimension."""

    error_code = "NAV_001"


class NoAccessibleCourses(EngineError):
    """The user teaches nothing. Recovered inside the engine as an empty node list."""

    error_code = "NAV_002"


# ============================================================================
# QUERY COMPOSITION EXCEPTIONS
# ============================================================================


class UnknownSubquery(EngineError):
    """A filter asked for a nested plan alias that was never attached."""

    error_code = "QRY_001"

    def __init__(self, alias: str, **kwargs):
        kwargs.setdefault("context", {})["alias"] = alias
        super().__init__(detail=f"No subquery attached under alias '{alias}'", **kwargs)
        self.alias = alias


class MissingParameter(EngineError):
    """A rendered statement references a parameter that was never set."""

    error_code = "QRY_002"

    def __init__(self, names, **kwargs):
        names = sorted(names)
        kwargs.setdefault("context", {})["parameters"] = names
        super().__init__(detail=f"Unset query parameter(s): {', '.join(names)}", **kwargs)
        self.names = names


class ParameterConflict(EngineError):
    """Two parts of one statement bound different values to the same parameter name."""

    error_code = "QRY_003"

    def __init__(self, name: str, **kwargs):
        kwargs.setdefault("context", {})["parameter"] = name
        super().__init__(detail=f"Parameter '{name}' bound to conflicting values", **kwargs)
        self.name = name


class PlanCompositionError(EngineError):
    """A query plan was assembled in a way the builder does not allow."""

    error_code = "QRY_004"


# ============================================================================
# CONTENT SOURCE EXCEPTIONS
# ============================================================================


class SourceContractError(EngineError):
    """A content source does not produce the fixed item column contract."""

    error_code = "SRC_001"


# ============================================================================
# STORE EXCEPTIONS
# ============================================================================


class StoreExecutionError(EngineError):
    """The relational store rejected or failed the rendered statement."""

    error_code = "DB_001"


# ============================================================================
# DISPATCHER EXCEPTIONS
# ============================================================================


class UnauthorizedException(EngineError):
    """No current user could be resolved for the request - 401"""

    error_code = "AUTH_001"

"""
Error handling package for the marking tree engine.

This package provides:
- Engine exception classes with error codes
- Error registry management
- FastAPI exception handlers

Usage:
    from marking_tree.exceptions import (
        InvalidPath,
        StoreExecutionError,
        register_exception_handlers,
    )
"""

from marking_tree.exceptions.exceptions import (
    EngineError,

    # Navigation
    InvalidPath,
    NoAccessibleCourses,

    # Query composition
    UnknownSubquery,
    MissingParameter,
    ParameterConflict,
    PlanCompositionError,

    # Content sources
    SourceContractError,

    # Store
    StoreExecutionError,

    # Dispatcher
    UnauthorizedException,
)

from marking_tree.exceptions.error_registry import (
    load_error_registry,
    get_error_definition,
    reload_error_registry,
)

from marking_tree.exceptions.error_handlers import register_exception_handlers

__all__ = [
    "EngineError",
    "InvalidPath",
    "NoAccessibleCourses",
    "UnknownSubquery",
    "MissingParameter",
    "ParameterConflict",
    "PlanCompositionError",
    "SourceContractError",
    "StoreExecutionError",
    "UnauthorizedException",
    "load_error_registry",
    "get_error_definition",
    "reload_error_registry",
    "register_exception_handlers",
]

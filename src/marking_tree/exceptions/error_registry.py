"""
Error registry management for loading and accessing error definitions.

This module loads the error_registry.yaml file shipped next to it and provides
utilities to access error definitions by code.
"""

import yaml
from pathlib import Path
from typing import Dict, Optional

from marking_types.errors import ErrorDefinition, ErrorMessageFormat


# Cache for error registry
_error_registry: Optional[Dict[str, ErrorDefinition]] = None

REGISTRY_PATH = Path(__file__).parent / "error_registry.yaml"


def load_error_registry() -> Dict[str, ErrorDefinition]:
    """
    Load error registry from YAML file.

    Returns:
        Dictionary mapping error codes to ErrorDefinition objects

    Raises:
        FileNotFoundError: If error_registry.yaml is not found
        ValueError: If YAML is malformed or validation fails
    """
    global _error_registry

    if _error_registry is not None:
        return _error_registry

    if not REGISTRY_PATH.exists():
        raise FileNotFoundError(f"Error registry not found at {REGISTRY_PATH}.")

    with open(REGISTRY_PATH, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data or "errors" not in data:
        raise ValueError("Invalid error registry format: missing 'errors' key")

    registry = {}
    for error_dict in data["errors"]:
        try:
            message_data = error_dict.get("message", {})
            error_def = ErrorDefinition(
                code=error_dict["code"],
                http_status=error_dict["http_status"],
                category=error_dict["category"],
                severity=error_dict["severity"],
                title=error_dict["title"],
                message=ErrorMessageFormat(
                    plain=message_data.get("plain", ""),
                    markdown=message_data.get("markdown"),
                ),
                recoverable=error_dict.get("recoverable", False),
                internal_description=error_dict.get("internal_description", ""),
                common_causes=error_dict.get("common_causes", []),
            )
        except (KeyError, ValueError) as e:
            raise ValueError(
                f"Failed to parse error definition for {error_dict.get('code', 'unknown')}: {e}"
            ) from e
        registry[error_def.code] = error_def

    _error_registry = registry
    return _error_registry


def get_error_definition(error_code: str) -> ErrorDefinition:
    """
    Get error definition by code.

    Args:
        error_code: Error code (e.g., "NAV_001")

    Returns:
        ErrorDefinition for the given code, or a generic internal definition
        for codes missing from the registry
    """
    registry = load_error_registry()

    if error_code not in registry:
        return ErrorDefinition(
            code="UNKNOWN",
            http_status=500,
            category="internal",
            severity="error",
            title="Unknown Error",
            message=ErrorMessageFormat(
                plain=f"An error occurred (code: {error_code})",
                markdown=f"**Unknown Error**\n\nAn error occurred with code: `{error_code}`",
            ),
            internal_description=f"Error code {error_code} not found in registry",
        )

    return registry[error_code]


def reload_error_registry() -> None:
    """Drop the cached registry (tests edit the YAML path)."""
    global _error_registry
    _error_registry = None

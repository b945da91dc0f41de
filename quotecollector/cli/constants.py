"""Exit codes shared by CLI commands."""

VALIDATION_EXIT_CODE = 2
COLLECTOR_EXIT_CODE = 3
SYSTEM_EXIT_CODE = 1

__all__ = ["VALIDATION_EXIT_CODE", "COLLECTOR_EXIT_CODE", "SYSTEM_EXIT_CODE"]

"""
Core Module - Cross-cutting concerns and shared infrastructure

Organization:
    - logging.py: Structured logging configuration and utilities
    - exceptions.py: Error taxonomy (not_found / validation / upstream / internal)
    - security.py: File name sanitization and path guards
    - runtime.py: Env parsing helpers and startup checks

Usage:
    from docreel.core import get_logger, NotFoundError
"""

from .logging import (
    setup_logging,
    get_logger,
    set_request_id,
    set_session_id,
    set_job_id,
    clear_context,
    LogTimer,
)

from .exceptions import (
    ErrorKind,
    DocReelError,
    NotFoundError,
    ValidationError,
    UpstreamError,
    InternalError,
)

from .security import (
    sanitize_filename,
    is_valid_id,
    validate_path_within_directory,
)

from .runtime import (
    REQUIRED_MEDIA_TOOLS,
    parse_bool_env,
    env_bool,
    env_int,
    env_float,
    locate_media_tools,
    missing_runtime_tools,
    run_startup_runtime_checks,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "set_request_id",
    "set_session_id",
    "set_job_id",
    "clear_context",
    "LogTimer",
    # Errors
    "ErrorKind",
    "DocReelError",
    "NotFoundError",
    "ValidationError",
    "UpstreamError",
    "InternalError",
    # Security
    "sanitize_filename",
    "is_valid_id",
    "validate_path_within_directory",
    # Runtime
    "REQUIRED_MEDIA_TOOLS",
    "parse_bool_env",
    "env_bool",
    "env_int",
    "env_float",
    "locate_media_tools",
    "missing_runtime_tools",
    "run_startup_runtime_checks",
]

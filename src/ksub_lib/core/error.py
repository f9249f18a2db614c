# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Exception types used throughout ksub.

This module defines the ksub-specific exceptions: recoverable errors raised
before any cluster mutation (configuration and precondition errors), errors
reported by the staging server or the cluster API, and the invariant violation
signalling an internal assembly defect. Each exception carries an associated
exit code used by the ksub CLI to report failures consistently.
"""

from ksub_lib.core.config import CFG


class KSubError(Exception):
    """Common exception type for all recoverable ksub errors."""

    exit_code = CFG.exit_codes.default


class KSubConfigurationError(KSubError):
    """Raised when the application configuration is malformed or not allowed."""

    pass


class KSubPreconditionError(KSubError):
    """Raised when the submission cannot proceed with the provided configuration."""

    exit_code = CFG.exit_codes.precondition


class KSubTransientError(KSubError):
    """
    Raised when the staging server or the cluster API cannot be reached.

    ksub never retries the failed operation; the whole submission has to be repeated.
    """

    exit_code = CFG.exit_codes.transient


class KSubClusterError(KSubError):
    """Raised when the cluster API rejects a request."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class KSubInvariantViolation(Exception):
    """
    Raised when ksub detects that it assembled an inconsistent driver pod.

    This is always a bug in ksub and never a user error.
    """

    exit_code = CFG.exit_codes.invariant_violation

"""Exception types raised by the Cloud Logging output."""

from __future__ import annotations


class GCLOutputError(RuntimeError):
    """Base error for the output adapter."""


class ConfigurationError(GCLOutputError):
    """Raised when output options are missing or malformed."""


class CredentialsError(GCLOutputError):
    """Raised when credentials cannot be loaded at startup."""


class OutputNotRegisteredError(GCLOutputError):
    """Raised when a batch arrives before ``register`` completed."""


class OutputClosedError(GCLOutputError):
    """Raised when a batch arrives after the output was closed."""

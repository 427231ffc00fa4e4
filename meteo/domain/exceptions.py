"""Centralized exception hierarchy for the meteo analysis core.

All raised exceptions inherit from :class:`MeteoError` so callers at the
ingestion boundary can catch one base class, yet still match on specific
subclasses where narrower handling is appropriate.

The analysis components themselves never raise for thin history, missing
optional fields or zero-variance statistics; those are silent local
recoveries. These exceptions cover the edges around them.

Hierarchy
---------
::

    MeteoError (base)
    ├── ValidationError      (malformed reading payload)
    ├── NotFoundError        (entity does not exist)
    └── ConfigurationError   (missing / invalid config)
"""

from __future__ import annotations


class MeteoError(Exception):
    """Base exception for all meteo errors.

    Parameters
    ----------
    message:
        Human-readable description.
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


class ValidationError(MeteoError):
    """Caller supplied an invalid or incomplete reading payload."""


class NotFoundError(MeteoError):
    """Requested entity does not exist."""


class ConfigurationError(MeteoError):
    """Missing or invalid application configuration."""

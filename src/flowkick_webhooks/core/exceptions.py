"""Common exceptions for domain and repository layers."""
from __future__ import annotations


class WebhookServiceError(Exception):
    """Base error for the webhook service."""


class RepositoryError(WebhookServiceError):
    """Raised when repository operations fail."""


class NotFoundError(RepositoryError):
    """Raised when requested entity is missing."""


class InvalidStatusTransitionError(WebhookServiceError):
    """Raised when a delivery row leaves a terminal status or is finalized twice."""

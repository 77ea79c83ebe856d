# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Custom exception hierarchy for baitwatch."""


class BaitwatchError(Exception):
    """Base exception for all baitwatch errors."""


class ConfigurationError(BaitwatchError):
    """Invalid or missing configuration."""


class ValidationError(BaitwatchError):
    """Malformed search, lookup, or filter input."""


class StorageError(BaitwatchError):
    """Database or storage operation failed."""


class StoreUnavailableError(StorageError):
    """The backend could not be reached or the caller's deadline expired."""


class DeliveryError(BaitwatchError):
    """An alert could not be handed to the notification provider."""

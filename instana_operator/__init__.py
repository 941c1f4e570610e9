"""Instana agent custom resource model with defaulting, event filtering and reconcile helpers."""

__version__ = "0.1.0"

__all__ = ["agent", "api_types", "backends", "cleanup", "event_filter", "reconcile"]
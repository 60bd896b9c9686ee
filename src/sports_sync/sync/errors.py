from __future__ import annotations


class SyncError(RuntimeError):
    """Base exception for failures inside a sync step."""


class EventNotFoundError(SyncError):
    """The event a step is anchored on does not exist in the store."""


class EventNotLinkedError(SyncError):
    """The anchor event has no id for the provider whose feed a step needs."""


class FeedEventMismatchError(SyncError):
    """A provider feed describes a different event than the one the step is anchored on."""

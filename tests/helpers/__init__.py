from .providers import Journal, RecordingExtension, TrackingProvider

__all__ = [
    "Journal",
    "RecordingExtension",
    "TrackingProvider",
]

"""Protocol-based interfaces for Helldrafters collaborators.

The rules layer and the session runtime only talk to analytics and to the
multiplayer transport through these protocols, so tests and alternative
backends can swap implementations freely.
"""

from helldrafters.interfaces.analytics import AnalyticsRecorder, LoggingAnalytics
from helldrafters.interfaces.relay import IntentHandler, RelayChannel, SnapshotCallback

__all__ = [
    "AnalyticsRecorder",
    "IntentHandler",
    "LoggingAnalytics",
    "RelayChannel",
    "SnapshotCallback",
]

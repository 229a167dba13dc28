"""Playback: playlist ownership, streaming reconciliation, typewriter, navigation.

All playback state lives in one PlaylistStore that is handed to each
component's constructor. Timed work (reveal ticks, coalesced reconciliation
passes) goes through an injected Scheduler; everything runs on one event
loop, so no locks are needed. The one ordering rule: finalizing a stream
cancels any pending pass before running its own.
"""

from .navigation import NavigationController  # noqa: F401
from .playlist import (  # noqa: F401
    PlaylistState,
    PlaylistStore,
    StartupChannel,
    StartupMessage,
)
from .scheduler import AsyncioScheduler, Handle, Scheduler  # noqa: F401
from .streaming import (  # noqa: F401
    FallbackPoller,
    ReconcileError,
    ReconcileResult,
    StreamingSession,
    StreamReconciler,
)
from .typewriter import RevealState, TypewriterAnimator  # noqa: F401

"""Geolocation tracker: single-shot capture plus interval tracking with a position watch.

The tracker is a small state machine (GeoStatus x tracking on/off, plus the
status of the last save) driven by ``handle(event)`` or the equivalent
methods. Platform pieces (position source, secure-context info, wake lock,
alert/confirm dialogs) and the place readings are pushed to are injected.

Each tracking session owns a cancellation token; stopping sets it, cancels the
timer task, clears the watch and releases the wake lock. Stopping is
idempotent.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

# GeolocationPositionError codes
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

DEFAULT_INTERVAL_SEC = 60.0

MSG_NOT_SUPPORTED = "Geolocation is not supported in this browser."
MSG_PERMISSION_DENIED = (
    "Permission denied. Fix: click the lock icon in the address bar → Site settings → "
    "Location → Allow. Then reload and try again."
)
MSG_UNAVAILABLE = "Position unavailable. Try again or check your device settings."
MSG_TIMEOUT = "Location request timed out. Try again."
MSG_UNKNOWN = "Unable to get your location."

_ERROR_MESSAGES = {
    PERMISSION_DENIED: MSG_PERMISSION_DENIED,
    POSITION_UNAVAILABLE: MSG_UNAVAILABLE,
    TIMEOUT: MSG_TIMEOUT,
}


class GeoStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class TrackerEvent(str, Enum):
    START = "start"
    STOP = "stop"
    TOGGLE = "toggle"
    CAPTURE = "capture"
    VISIBLE = "visible"
    HIDDEN = "hidden"


class GeolocationError(Exception):
    """Failure reported by a position source, with a GeolocationPositionError code."""

    def __init__(self, code: int, message: str = "") -> None:
        self.code = code
        self.message = message or _ERROR_MESSAGES.get(code, MSG_UNKNOWN)
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Message shown to the user; known codes get a fixed hint."""
        return _ERROR_MESSAGES.get(self.code, self.message or MSG_UNKNOWN)


@dataclass(frozen=True)
class Position:
    """One reading, mirroring GeolocationCoordinates plus the reading timestamp (epoch ms)."""

    lat: float
    lng: float
    accuracy: float | None = None
    altitude: float | None = None
    altitude_accuracy: float | None = None
    heading: float | None = None
    speed: float | None = None
    timestamp: int | None = None

    def to_payload(self) -> dict[str, Any]:
        """JSON body for POST /api/locations and /gps."""
        return {
            "lat": self.lat,
            "lng": self.lng,
            "accuracy": self.accuracy,
            "altitude": self.altitude,
            "altitudeAccuracy": self.altitude_accuracy,
            "heading": self.heading,
            "speed": self.speed,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class PositionOptions:
    enable_high_accuracy: bool = True
    timeout: float = 12.0
    maximum_age: float = 15.0


class PositionSource(Protocol):
    """Device position API. Watch callbacks must run on the tracker's event loop."""

    async def get_current_position(self, options: PositionOptions) -> Position: ...

    def watch_position(
        self,
        on_position: Callable[[Position], None],
        on_error: Callable[[GeolocationError], None],
        options: PositionOptions,
    ) -> int: ...

    def clear_watch(self, watch_id: int) -> None: ...


class WakeLockSentinel(Protocol):
    async def release(self) -> None: ...


class WakeLockProvider(Protocol):
    async def request(self) -> WakeLockSentinel: ...


@dataclass(frozen=True)
class SecureContext:
    """Where the page is served from; geolocation needs a secure origin or localhost."""

    is_secure: bool = True
    protocol: str = "https:"
    host: str = "localhost"
    hostname: str = "localhost"
    in_iframe: bool = False

    @classmethod
    def from_url(cls, url: str, in_iframe: bool = False) -> SecureContext:
        parts = urlsplit(url)
        hostname = parts.hostname or ""
        secure = parts.scheme == "https" or hostname in ("localhost", "127.0.0.1", "::1")
        return cls(
            is_secure=secure,
            protocol=f"{parts.scheme}:",
            host=parts.netloc,
            hostname=hostname,
            in_iframe=in_iframe,
        )

    def allows_geolocation(self) -> bool:
        return self.is_secure or self.hostname == "localhost"

    def insecure_message(self) -> str:
        message = (
            "Geolocation is blocked because this page is not in a secure context.\n\n"
            "Fix: open the app on HTTPS (or use http://localhost)."
        )
        if self.in_iframe:
            message += (
                "\n\nIf this app is inside an iframe, the page that contains the iframe "
                "must ALSO be HTTPS."
            )
        return message + f"\n\nCurrent frame: {self.protocol}//{self.host}"


@dataclass
class _TrackingSession:
    """Handles owned by one start..stop cycle."""

    cancelled: asyncio.Event = field(default_factory=asyncio.Event)
    timer_task: asyncio.Task | None = None
    watch_id: int | None = None
    wake_lock: WakeLockSentinel | None = None
    # At most one wake lock request in flight per session.
    acquiring_wake_lock: bool = False


Sink = Callable[[Position], Awaitable[Any]]
Listener = Callable[["GeoTracker"], None]


class GeoTracker:
    """Captures positions and pushes them to a sink, once or every ``interval`` seconds."""

    def __init__(
        self,
        source: PositionSource | None,
        sink: Sink,
        *,
        context: SecureContext | None = None,
        wake_lock: WakeLockProvider | None = None,
        alert: Callable[[str], None] | None = None,
        confirm: Callable[[str], bool] | None = None,
        interval: float = DEFAULT_INTERVAL_SEC,
        options: PositionOptions | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._source = source
        self._sink = sink
        self._context = context or SecureContext()
        self._wake_lock_provider = wake_lock
        self._alert = alert
        self._confirm = confirm
        self.interval = interval
        self.options = options or PositionOptions()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.geo_status = GeoStatus.IDLE
        self.geo_error: str | None = None
        self.position: Position | None = None
        self.latest_position: Position | None = None
        self.save_status = SaveStatus.IDLE
        self.save_error: str | None = None
        self.last_saved_at: datetime | None = None

        self._session: _TrackingSession | None = None
        self._listeners: list[Listener] = []
        self._background: set[asyncio.Task] = set()

    @property
    def tracking(self) -> bool:
        return self._session is not None

    @property
    def wake_lock_held(self) -> bool:
        return self._session is not None and self._session.wake_lock is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener after every state change; returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    async def handle(self, event: TrackerEvent) -> None:
        """Event entry point for UIs that dispatch messages instead of calling methods."""
        if event is TrackerEvent.START:
            await self.start_tracking()
        elif event is TrackerEvent.STOP:
            await self.stop_tracking()
        elif event is TrackerEvent.TOGGLE:
            await self.toggle_tracking()
        elif event is TrackerEvent.CAPTURE:
            await self.capture_and_save()
        elif event is TrackerEvent.VISIBLE:
            await self.on_visibility_change(True)
        elif event is TrackerEvent.HIDDEN:
            await self.on_visibility_change(False)
        else:
            raise ValueError(f"Unknown tracker event: {event!r}")

    # Single-shot capture

    def _fail(self, message: str, alert: bool = False) -> None:
        self.geo_status = GeoStatus.ERROR
        self.geo_error = message
        self._notify()
        if alert and self._alert is not None:
            self._alert(message)

    def _precondition_error(self) -> str | None:
        if self._source is None:
            return MSG_NOT_SUPPORTED
        if not self._context.allows_geolocation():
            return self._context.insecure_message()
        return None

    async def capture_and_save(self) -> Position | None:
        """
        Request one position, show it and push it to the sink.

        Permission denied stops tracking; timeout and unavailable leave it running.
        Returns the captured position, or None on failure.
        """
        return await self._capture(None)

    async def _capture(self, session: _TrackingSession | None) -> Position | None:
        # With a session, nothing is shown or saved once that session is stopped.
        self.geo_error = None
        problem = self._precondition_error()
        if problem is not None:
            # Browsers fail silently outside a secure context; refuse before asking.
            self._fail(problem, alert=problem != MSG_NOT_SUPPORTED)
            return None

        self.geo_status = GeoStatus.LOADING
        self._notify()
        try:
            position = await self._source.get_current_position(self.options)
        except GeolocationError as e:
            if session is not None and session.cancelled.is_set():
                return None
            await self._handle_geo_error(e)
            return None
        if session is not None and session.cancelled.is_set():
            return None

        self.save_status = SaveStatus.IDLE
        self.save_error = None
        self._set_position(position)
        await self._save(position)
        return position

    async def _handle_geo_error(self, error: GeolocationError) -> None:
        denied = error.code == PERMISSION_DENIED
        logger.info("Geolocation error code=%s", error.code)
        self._fail(error.user_message, alert=denied)
        if denied:
            await self.stop_tracking(reset_status=False)

    def _set_position(self, position: Position) -> None:
        # Watch updates and captures race; whichever arrives last is shown.
        self.position = position
        self.latest_position = position
        self.geo_status = GeoStatus.READY
        self._notify()

    async def _save(self, position: Position) -> bool:
        self.save_status = SaveStatus.SAVING
        self.save_error = None
        self._notify()
        try:
            await self._sink(position)
        except Exception as e:
            # Surfaced to the user; the next timer tick tries again.
            logger.warning("Saving location failed: %s", e)
            self.save_status = SaveStatus.ERROR
            self.save_error = str(e) or type(e).__name__
            self._notify()
            return False
        self.save_status = SaveStatus.SAVED
        self.last_saved_at = self._clock()
        self._notify()
        return True

    # Tracking

    async def start_tracking(self) -> bool:
        """
        Start the watch and the repeating save timer, capturing once immediately.

        No-op (returns False) when already tracking or when the user declines.
        Also returns False when stop_tracking() runs before start has finished.
        """
        if self._session is not None:
            return False
        if self._confirm is not None:
            seconds = int(self.interval)
            prompt = (
                "Allow this app to use your current location every "
                f"{seconds} seconds and save it to the database?"
            )
            if not self._confirm(prompt):
                return False

        session = _TrackingSession()
        self._session = session
        self._notify()
        logger.info("Tracking started (interval=%ss)", self.interval)

        await self._acquire_wake_lock(session)
        if session.cancelled.is_set():
            return False
        if self._precondition_error() is None:
            session.watch_id = self._source.watch_position(
                self._on_watch_position, self._on_watch_error, self.options
            )
        session.timer_task = asyncio.create_task(self._run_timer(session))

        await self._capture(session)
        return True

    async def stop_tracking(self, reset_status: bool = True) -> None:
        """Cancel the timer, clear the watch and release the wake lock. Idempotent."""
        session = self._session
        if session is None:
            return
        self._session = None
        session.cancelled.set()

        if session.watch_id is not None and self._source is not None:
            self._source.clear_watch(session.watch_id)
            session.watch_id = None

        task = session.timer_task
        session.timer_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        await self._release_wake_lock(session)
        if reset_status:
            self.geo_status = GeoStatus.IDLE
        logger.info("Tracking stopped")
        self._notify()

    async def toggle_tracking(self) -> None:
        if self.tracking:
            await self.stop_tracking()
        else:
            await self.start_tracking()

    async def close(self) -> None:
        """Stop tracking and wait for pending background work."""
        await self.stop_tracking()
        for task in list(self._background):
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run_timer(self, session: _TrackingSession) -> None:
        while not session.cancelled.is_set():
            try:
                await asyncio.wait_for(session.cancelled.wait(), timeout=self.interval)
                return
            except asyncio.TimeoutError:
                pass
            try:
                await self._tick(session)
            except Exception:
                logger.exception("Tracking tick failed")

    async def _tick(self, session: _TrackingSession) -> None:
        if session.cancelled.is_set():
            return
        # The watch keeps latest_position fresh; fall back to a capture until it has fired.
        if self.latest_position is not None:
            await self._save(self.latest_position)
        else:
            await self._capture(session)

    def _on_watch_position(self, position: Position) -> None:
        if self._session is None:
            return
        self._set_position(position)

    def _on_watch_error(self, error: GeolocationError) -> None:
        if self._session is None:
            return
        if error.code == PERMISSION_DENIED:
            self._fail(error.user_message, alert=True)
            task = asyncio.get_running_loop().create_task(self.stop_tracking(reset_status=False))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
        else:
            self.geo_error = error.user_message
            self._notify()

    # Wake lock (best effort)

    async def on_visibility_change(self, visible: bool) -> None:
        """The platform drops wake locks when the page is hidden; re-request on return."""
        session = self._session
        if session is None:
            return
        if not visible:
            session.wake_lock = None
            return
        await self._acquire_wake_lock(session)

    async def _acquire_wake_lock(self, session: _TrackingSession) -> None:
        if self._wake_lock_provider is None:
            return
        if session.wake_lock is not None or session.acquiring_wake_lock:
            return
        session.acquiring_wake_lock = True
        try:
            sentinel = await self._wake_lock_provider.request()
        except Exception as e:
            logger.debug("Wake lock request failed: %s", e)
            return
        finally:
            session.acquiring_wake_lock = False
        if session.cancelled.is_set() or session.wake_lock is not None:
            await self._release_sentinel(sentinel)
            return
        session.wake_lock = sentinel

    async def _release_wake_lock(self, session: _TrackingSession) -> None:
        sentinel = session.wake_lock
        session.wake_lock = None
        if sentinel is not None:
            await self._release_sentinel(sentinel)

    @staticmethod
    async def _release_sentinel(sentinel: WakeLockSentinel) -> None:
        try:
            await sentinel.release()
        except Exception as e:
            logger.debug("Wake lock release failed: %s", e)

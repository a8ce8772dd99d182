"""Server-side telemetry for spins and provisioning."""
import logging
from dataclasses import asdict, dataclass
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    """Protocol for telemetry sinks."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Emit a telemetry event."""
        ...


class LoggingTelemetrySink:
    """Default sink that logs telemetry events."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Log telemetry event."""
        logger.info("TELEMETRY %s: %s", event_name, data)


@dataclass
class SpinSettledEvent:
    """spin_settled: a spin whose balance write applied."""

    user_id: str
    round_id: str
    reels: list[int]
    win: bool
    payout: int
    coins_before: int
    coins_after: int
    attempts: int  # 1 unless a concurrent write forced a redraw
    config_hash: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return asdict(self)


@dataclass
class SpinRejectedEvent:
    """spin_rejected: a spin that ended without touching the balance."""

    user_id: str | None  # None when authentication failed
    reason: str  # ErrorCode value
    attempts: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return asdict(self)


@dataclass
class ProfileCreatedEvent:
    """profile_created: provisioning with the starting balance."""

    user_id: str
    starting_balance: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return asdict(self)


class TelemetryService:
    """Service for emitting server telemetry events."""

    def __init__(self, sink: TelemetrySink | None = None):
        self._sink = sink or LoggingTelemetrySink()
        self._sink_errors = 0  # Counter for sink failures

    def set_sink(self, sink: TelemetrySink) -> None:
        """Set the telemetry sink (useful for testing)."""
        self._sink = sink

    def _safe_emit(self, event_name: str, data: dict[str, Any]) -> None:
        """
        Emit event with exception safety.

        Sink failures MUST NOT break HTTP requests.
        """
        try:
            self._sink.emit(event_name, data)
        except Exception as e:
            self._sink_errors += 1
            logger.warning(
                "Telemetry sink error (count=%d): %s - %s",
                self._sink_errors,
                event_name,
                str(e),
            )

    def emit_spin_settled(self, event: SpinSettledEvent) -> None:
        self._safe_emit("spin_settled", event.to_dict())

    def emit_spin_rejected(self, event: SpinRejectedEvent) -> None:
        self._safe_emit("spin_rejected", event.to_dict())

    def emit_profile_created(self, event: ProfileCreatedEvent) -> None:
        self._safe_emit("profile_created", event.to_dict())


# Global instance
telemetry_service = TelemetryService()

"""Error taxonomy shared by the tracker, aggregator, store and notifier."""

from datetime import datetime


class PowerSwitchError(Exception):
    """Base class for all PowerSwitch domain errors."""


class ValidationError(PowerSwitchError):
    """Malformed or out-of-range input; the triggering action is aborted before any write."""

    def __init__(self, field, value, reason):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")


class StoreUnavailableError(PowerSwitchError):
    """The record store is not configured or could not be reached."""

    def __init__(self, detail="Database not configured"):
        self.detail = detail
        super().__init__(detail)


class ClockOrderingError(PowerSwitchError):
    """A new status timestamp precedes the previous record's timestamp."""

    def __init__(self, previous_at: datetime, new_at: datetime):
        self.previous_at = previous_at
        self.new_at = new_at
        super().__init__(
            f"Status timestamp {new_at.isoformat()} precedes previous record at {previous_at.isoformat()}"
        )


class DeliveryFailure(PowerSwitchError):
    """The chat transport rejected or failed to deliver a message."""

    def __init__(self, channel, detail):
        self.channel = channel
        self.detail = detail
        super().__init__(f"{channel} delivery failed: {detail}")

from bookings_api.infrastructure.history.history_tracker import HistoryTracker, as_utc

__all__ = ["HistoryTracker", "as_utc"]

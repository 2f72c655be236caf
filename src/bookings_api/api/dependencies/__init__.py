from bookings_api.api.dependencies.auth import (
    CurrentActor,
    decode_actor,
    get_current_actor,
    get_settings,
)

__all__ = ["CurrentActor", "decode_actor", "get_current_actor", "get_settings"]

"""Push payload contract shared by the sender and the background handler"""

from typing import Any, Optional

DEFAULT_TITLE = "Nuova notifica"
DEFAULT_BODY = "Hai un nuovo messaggio."

TITLE_KEY = "notificationTitle"
BODY_KEY = "notificationBody"

# FCM rejects data payloads over 4KB; these keep the worst case UTF-8 size well below it
MAX_TITLE_LENGTH = 100
MAX_BODY_LENGTH = 500


def build_push_data(title: str, body: str) -> dict[str, str]:
    """Data-only message payload. FCM data values must be strings."""
    return {TITLE_KEY: str(title), BODY_KEY: str(body)}


def payload_too_long(title: str, body: str) -> bool:
    return len(title) > MAX_TITLE_LENGTH or len(body) > MAX_BODY_LENGTH


def read_push_data(payload: Optional[Any]) -> tuple[str, str]:
    """
    Decode a received push payload into (title, body).

    Accepts either the bare data dict or the full message (``{"data": {...}}``).
    Missing, blank or malformed values fall back to the default pair.
    """
    data = payload.get("data", payload) if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        return DEFAULT_TITLE, DEFAULT_BODY

    title = data.get(TITLE_KEY)
    body = data.get(BODY_KEY)
    if not isinstance(title, str) or not title.strip():
        title = DEFAULT_TITLE
    if not isinstance(body, str) or not body.strip():
        body = DEFAULT_BODY
    return title, body

import time
from datetime import datetime

from nanoid import generate

ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def new_id() -> str:
    """Opaque record id: epoch milliseconds plus a short random suffix."""
    return f"id_{int(time.time() * 1000)}_{generate(ID_ALPHABET, 8)}"


def now() -> str:
    """Current local time as ``YYYY-MM-DD HH:MM:SS``."""
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def today() -> str:
    return now().split(" ")[0]

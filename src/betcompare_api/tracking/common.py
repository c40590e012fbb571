"""Clock and id helpers shared by the trackers."""

import random
import string
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], float]

_ID_ALPHABET = string.ascii_lowercase + string.digits


def event_time(clock: Clock) -> datetime:
    return datetime.fromtimestamp(clock(), tz=timezone.utc)


def new_session_id(clock: Clock, rng: random.Random) -> str:
    """`session_{epoch millis}_{9 random base-36 chars}`."""
    suffix = "".join(rng.choice(_ID_ALPHABET) for _ in range(9))
    return f"session_{int(clock() * 1000)}_{suffix}"

# ids.py
import random
import time
import uuid
from typing import Callable, Dict

IdGenerator = Callable[[], str]


def timestamp_id() -> str:
    """
    Millisecond wall-clock timestamp followed by a 3-digit random suffix.
    Two calls in the same millisecond that draw the same suffix collide.
    """
    millis = int(time.time() * 1000)
    return f"{millis}{random.randint(0, 999):03d}"


def uuid_id() -> str:
    return uuid.uuid4().hex


ID_SCHEMES: Dict[str, IdGenerator] = {
    "timestamp": timestamp_id,
    "uuid": uuid_id,
}


def get_id_generator(scheme: str = "timestamp") -> IdGenerator:
    try:
        return ID_SCHEMES[scheme]
    except KeyError:
        raise ValueError(
            f"Unknown id scheme '{scheme}'. Expected one of: {', '.join(sorted(ID_SCHEMES))}"
        ) from None

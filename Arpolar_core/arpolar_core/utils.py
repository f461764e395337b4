from __future__ import annotations

import random
import time
import unicodedata
from datetime import datetime, timezone

DATA_IMAGE_PREFIX = "data:image"
AVATAR_REF_PREFIX = "avatar:"


def to_nfc(value: str) -> str:
    return unicodedata.normalize("NFC", value)


def strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    filtered = [c for c in decomposed if not unicodedata.combining(c)]
    return unicodedata.normalize("NFC", "".join(filtered))


def fold(value: str) -> str:
    """Case- and accent-insensitive key used to compare labels."""
    return " ".join(strip_diacritics(value).upper().split())


def epoch_millis() -> int:
    return int(time.time() * 1000)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def random_token(rng: random.Random | None = None) -> str:
    source = rng or random
    return f"{source.random():.16f}"[2:]


def is_data_url(value: str | None) -> bool:
    return bool(value) and value.startswith(DATA_IMAGE_PREFIX)


def avatar_ref(node_id: str) -> str:
    return f"{AVATAR_REF_PREFIX}{node_id}"


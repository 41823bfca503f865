# utils/rounds.py
import re
from hackportal.config import Settings

_ROUND_RE = re.compile(r"^r(\d+)$")


def configured_rounds(count: int | None = None) -> list[dict[str, str]]:
    """Rounds r1..rN as ``{"id", "name"}`` pairs, N taken from ROUND_COUNT by default."""
    total = Settings().round_count if count is None else count
    return [{"id": f"r{n}", "name": label_for_round(f"r{n}")} for n in range(1, total + 1)]


def round_ids(count: int | None = None) -> list[str]:
    return [r["id"] for r in configured_rounds(count)]


def label_for_round(round_id: str) -> str:
    match = _ROUND_RE.match(round_id)
    if match:
        return f"Round {match.group(1)}"
    return round_id


def round_sort_key(round_id: str) -> tuple[int, str]:
    match = _ROUND_RE.match(round_id)
    if match:
        return int(match.group(1)), round_id
    return 1 << 30, round_id

"""Utility helpers for reading data files and handling timestamps."""

from __future__ import annotations

import json
import math
import os
from datetime import datetime, timezone
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal
from functools import lru_cache
from os import PathLike
from pathlib import Path
from typing import Any, Dict, Mapping, TextIO, Union

import yaml

__all__ = [
    "load_json",
    "save_json",
    "load_data",
    "load_dataset",
    "clear_dataset_cache",
    "dataset_paths",
    "get_data_dir",
    "overlay_dir",
    "deep_update",
    "round_half_up",
    "round_half_ceiling",
    "as_utc",
    "utcnow",
    "parse_timestamp",
    "format_timestamp",
    "difference_in_days",
]


PathType = Union[str, PathLike]

SECONDS_PER_DAY = 24 * 60 * 60


def _open_text(path: Path) -> TextIO:
    return open(path, "r", encoding="utf-8")


def load_json(path: PathType) -> Any:
    """Return the parsed JSON contents of ``path``.

    A :class:`FileNotFoundError` is raised if the file does not exist and a
    :class:`ValueError` is raised when the contents cannot be decoded as JSON.
    The error message always includes the file path to aid debugging.
    """

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    try:
        with _open_text(p) as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {p}: {exc}") from exc


def load_data(path: PathType) -> Any:
    """Return the parsed contents of ``path`` supporting JSON or YAML."""

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    try:
        with _open_text(p) as f:
            if p.suffix.lower() in {".yaml", ".yml"}:
                return yaml.safe_load(f) or {}
            return json.load(f)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {p}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {p}: {exc}") from exc


def save_json(path: PathType, data: Any) -> bool:
    """Write ``data`` to ``path`` atomically and return ``True`` on success."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_suffix(p.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.write("\n")
    tmp.replace(p)
    return True


def deep_update(base: Dict[str, Any], other: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``other`` into ``base`` and return ``base``."""

    for key, value in other.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, Mapping)
        ):
            deep_update(base[key], value)
        else:
            base[key] = value
    return base


# Reference datasets ship inside the package ``data`` folder. The directory can
# be replaced using ``TERRA_MIX_DATA_DIR``. An optional overlay directory
# ``TERRA_MIX_OVERLAY_DIR`` holds user-provided files that merge with the
# defaults, so a single stage or label can be changed without copying the
# whole dataset.
DEFAULT_DATA_DIR = Path(__file__).resolve().parent / "data"
DATA_ENV = "TERRA_MIX_DATA_DIR"
OVERLAY_ENV = "TERRA_MIX_OVERLAY_DIR"


def get_data_dir() -> Path:
    """Return base dataset directory honoring the ``TERRA_MIX_DATA_DIR`` env."""

    env = os.getenv(DATA_ENV)
    return Path(env).expanduser() if env else DEFAULT_DATA_DIR


def overlay_dir() -> Path | None:
    """Return the overlay directory defined via ``TERRA_MIX_OVERLAY_DIR``."""

    env = os.getenv(OVERLAY_ENV)
    return Path(env).expanduser() if env else None


def dataset_paths() -> tuple[Path, ...]:
    """Return directories searched when loading datasets, overlay last."""

    paths = [get_data_dir()]
    overlay = overlay_dir()
    if overlay:
        paths.append(overlay)
    return tuple(paths)


@lru_cache(maxsize=None)
def load_dataset(filename: str) -> Dict[str, Any]:
    """Return dataset ``filename`` merged with any overlay data.

    Missing files yield an empty dictionary so callers can fall back to
    built-in defaults.
    """

    data: Dict[str, Any] = {}
    for base in dataset_paths():
        path = base / filename
        if path.exists():
            extra = load_data(path)
            if isinstance(extra, dict) and isinstance(data, dict):
                deep_update(data, extra)
            else:
                data = extra
    return data


def clear_dataset_cache() -> None:
    """Clear cached dataset contents so environment changes take effect."""

    load_dataset.cache_clear()


def round_half_up(value: float, digits: int = 2) -> float:
    """Return ``value`` rounded half away from zero at ``digits`` decimals.

    Values are converted through ``repr`` so ``1.005`` rounds to ``1.01`` the
    way it reads rather than the way it is stored.
    """

    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_half_ceiling(value: float, digits: int = 0) -> float:
    """Return ``value`` rounded with ties towards positive infinity.

    ``-0.125`` becomes ``-0.12`` and ``0.125`` becomes ``0.13``. Negative zero
    is returned as ``0.0``.
    """

    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-digits)
    rounding = ROUND_HALF_UP if value >= 0 else ROUND_HALF_DOWN
    return float(Decimal(repr(value)).quantize(quantum, rounding=rounding)) or 0.0


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime. Naive values are taken as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Return an aware datetime for ``value`` or ``None`` when invalid.

    Accepts datetimes and ISO-8601 strings, including the ``Z`` suffix used by
    JavaScript's ``toISOString``. Naive values are assumed to be UTC.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    return as_utc(parsed)


def format_timestamp(value: datetime | None) -> str | None:
    """Return ``value`` as an ISO-8601 UTC string with millisecond precision."""

    if value is None:
        return None
    return as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def difference_in_days(start: datetime | str | None, now: datetime | None = None) -> int:
    """Return whole days elapsed from ``start`` to ``now``.

    The result is floored, so negative spans round towards negative infinity.
    Unparseable timestamps count as zero days.
    """

    begin = parse_timestamp(start)
    if begin is None:
        return 0
    end = parse_timestamp(now) if now is not None else utcnow()
    seconds = (end - begin).total_seconds()
    return math.floor(seconds / SECONDS_PER_DAY)

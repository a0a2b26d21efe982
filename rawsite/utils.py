from __future__ import annotations

import datetime as dt
import os
from pathlib import Path


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def file_timestamp(path: Path) -> dt.datetime:
    return dt.datetime.fromtimestamp(path.stat().st_mtime)


def set_file_timestamp(path: Path, value: dt.datetime) -> None:
    stamp = value.timestamp()
    os.utime(path, (stamp, stamp))


def month_label(value: dt.datetime) -> str:
    return value.strftime("%B %Y")

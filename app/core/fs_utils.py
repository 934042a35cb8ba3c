from datetime import datetime
import json
import os
from pathlib import Path
import tempfile
from typing import Any, Callable, Optional


def ensure_dir(directory: str | Path) -> None:
    """
    Create a directory (and its parents) if it does not exist yet.
    """
    if directory:
        os.makedirs(directory, exist_ok=True)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json(path: str | Path, data: Any) -> None:
    """
    Write JSON data to a file using an atomic replace.

    The document is written to a temporary sibling file, fsynced, then moved
    over the target with os.replace, so readers only ever see the previous
    document or the new one. Datetimes are stored as ISO-8601 strings.
    """
    target_path = Path(path)
    ensure_dir(target_path.parent)

    fd, tmp_path_str = tempfile.mkstemp(
        dir=str(target_path.parent),
        prefix=target_path.name,
        suffix=".tmp",
    )
    tmp_path = Path(tmp_path_str)

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2, default=_json_default)
            f.flush()
            os.fsync(f.fileno())

        os.replace(tmp_path, target_path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise


def read_json(
    path: str | Path,
    default: Any = None,
    *,
    on_error: Optional[Callable[[Exception], None]] = None,
) -> Any:
    """
    Read a JSON file.

    - returns `default` if the file does not exist
    - on invalid JSON, calls `on_error` (which may raise) and returns `default`
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default
    except json.JSONDecodeError as e:
        if on_error:
            on_error(e)
        return default

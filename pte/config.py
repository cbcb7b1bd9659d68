from __future__ import annotations
import os
import json
import logging
from typing import Any, Dict
from pathlib import Path
import copy

logger = logging.getLogger(__name__)

ENV_PREFIX = "PTE__"

_DEFAULTS: Dict[str, Any] = {
    "log_level": "INFO",
    "transfer": {
        "conflict_resolution": "skip",
        "batch_size": 50,
        "retry_attempts": 3,
        "retry_base_delay": 1.0,  # seconds; attempt n waits n * base
    },
    "matching": {
        "strategy": "scoring",  # scoring | search (trust the platform's top hit)
        "min_score": 0.6,
        "title_weight": 0.55,
        "artist_weight": 0.35,
        "album_weight": 0.10,
        "duration_tolerance": 10,
    },
    "providers": {
        "spotify": {
            "api_base": "https://api.spotify.com/v1",
            "requests_per_second": 10,
            "timeout_seconds": 30,
        },
        "youtube": {
            "api_base": "https://www.googleapis.com/youtube/v3",
            "requests_per_second": 5,
            "timeout_seconds": 30,
            "privacy_status": "private",
        },
        "apple": {
            "api_base": "https://api.music.apple.com/v1",
            "requests_per_second": 10,
            "timeout_seconds": 30,
            "storefront": "us",
            "developer_token": None,
        },
        "amazon": {
            "requests_per_second": 10,
            "timeout_seconds": 30,
        },
    },
    "history": {"path": "data/history.db", "max_records": 50},
}


def deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Merge dict b into a (shallow copies) returning new dict.
    Nested dicts are merged recursively; other values override.
    """
    result = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)  # type: ignore[arg-type]
        else:
            result[k] = v
    return result


def _load_dotenv(path: Path) -> Dict[str, str]:
    values: Dict[str, str] = {}
    if not path.exists():
        return values
    for line in path.read_text(encoding='utf-8').splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, val = line.split('=', 1)
        key = key.strip()
        if key.startswith('export '):
            key = key[len('export '):].strip()
        val = val.strip()
        # Strip inline comments starting with # unless inside quotes
        if '#' in val:
            in_single = False
            in_double = False
            result_chars = []
            for ch in val:
                if ch == "'" and not in_double:
                    in_single = not in_single
                elif ch == '"' and not in_single:
                    in_double = not in_double
                if ch == '#' and not in_single and not in_double:
                    break
                result_chars.append(ch)
            val = ''.join(result_chars).rstrip()
        # Remove wrapping quotes if present
        if len(val) >= 2 and val[0] == val[-1] and val[0] in ('"', "'"):
            val = val[1:-1]
        if key:
            values[key] = val
    return values


def load_config(overrides: Dict[str, Any] | None = None, env_file: str | Path = '.env') -> Dict[str, Any]:
    """Load configuration merging defaults <- .env <- environment <- overrides.

    During test runs (detected via PYTEST_CURRENT_TEST) .env loading is skipped
    unless PTE_ENABLE_DOTENV=1 is set to allow deterministic defaults.

    Keys map onto nested sections with ``__`` as separator, e.g.
    ``PTE__TRANSFER__BATCH_SIZE=20`` or ``PTE__PROVIDERS__YOUTUBE__PRIVACY_STATUS=unlisted``.

    Args:
        overrides: Dict of values to deep-merge last (CLI flags, tests).
        env_file: Dotenv file consulted before the real environment.

    Returns:
        dict: Configuration dictionary (for typed access use load_typed_config()).
    """
    dotenv_values: Dict[str, str] = {}
    if os.environ.get('PTE_ENABLE_DOTENV') or not os.environ.get('PYTEST_CURRENT_TEST'):
        dotenv_values = _load_dotenv(Path(env_file))
    # Deep copy defaults to avoid cross-call mutation of nested dicts
    cfg: Dict[str, Any] = copy.deepcopy(_DEFAULTS)

    # Merge .env and real environment (real env wins)
    combined = {**{k: v for k, v in dotenv_values.items() if k.startswith(ENV_PREFIX)},
                **{k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)}}
    for raw_key, value in combined.items():
        path_parts = raw_key[len(ENV_PREFIX):].split("__")
        cursor: Dict[str, Any] = cfg
        for part in path_parts[:-1]:
            nxt = cursor.setdefault(part.lower(), {})
            if not isinstance(nxt, dict):
                logger.warning(f"Ignoring {raw_key}: '{part.lower()}' is not a section")
                break
            cursor = nxt
        else:
            cursor[path_parts[-1].lower()] = coerce_scalar(value)
    if overrides:
        cfg = deep_merge(cfg, overrides)

    _configure_logging(cfg.get('log_level', 'INFO'))

    return cfg


def load_typed_config(overrides: Dict[str, Any] | None = None):
    """Load configuration as typed AppConfig object.

    Args:
        overrides: Dictionary of override values

    Returns:
        AppConfig: Typed configuration object with .to_dict() for dict conversion
    """
    from .config_types import AppConfig
    return AppConfig.from_dict(load_config(overrides))


def _configure_logging(level_str: str) -> None:
    """Configure Python logging based on configured level."""
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL,
    }
    level = level_map.get(str(level_str).upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(message)s',
        force=True
    )
    # urllib3 logs every connection at DEBUG; keep it out of transfer output
    logging.getLogger('urllib3').setLevel(max(level, logging.INFO))


def coerce_scalar(value: str) -> Any:
    txt = value.strip()
    # JSON object or array
    if (txt.startswith('[') and txt.endswith(']')) or (txt.startswith('{') and txt.endswith('}')):
        try:
            return json.loads(txt)
        except ValueError:
            pass  # fall through to scalar heuristics
    lower = txt.lower()
    if lower in {"true", "yes", "on"}:
        return True
    if lower in {"false", "no", "off"}:
        return False
    if lower in {"none", "null"}:
        return None
    if txt.isdigit() or (txt.startswith("-") and txt[1:].isdigit()):
        return int(txt)
    try:
        return float(txt)
    except ValueError:
        return txt


__all__ = ["load_config", "deep_merge", "load_typed_config", "coerce_scalar", "ENV_PREFIX"]

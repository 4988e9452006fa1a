from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .config import DEFAULT_CONFIG, default_config_path, load_config
from .errors import SettingsError

MODES = ("append", "rewrite")


def _to_extension_list(value: Any) -> List[str]:
    """
    Normalize the extensions option.
    YAML and callers may give a single string, a list, or nested lists;
    entries may carry a leading dot ("txt" and ".txt" are the same).
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    flat = []
    for v in value:
        if isinstance(v, (list, tuple, set, frozenset)):
            flat.extend(_to_extension_list(v))
        else:
            ext = str(v).strip().lstrip(".")
            if ext:
                flat.append(ext)
    return flat


def build_settings(
    overrides: Optional[Mapping[str, Any]] = None,
    config_path: Optional[Union[str, Path]] = None,
) -> Dict[str, Any]:
    """
    Build final settings using priority:
      DEFAULTS <- config file <- overrides (non-None)
    Args:
      overrides: mapping of option name to value; None values are ignored
      config_path: YAML config file, or None to use $APPENDLOG_CONFIG
    Returns:
      dict with keys: extensions (frozenset), mode, encoding, max_attempts
    """
    cfg_path = Path(config_path) if config_path else default_config_path()
    final = DEFAULT_CONFIG.copy()
    if cfg_path is not None:
        final.update(load_config(cfg_path))

    for key, value in (overrides or {}).items():
        if key not in DEFAULT_CONFIG:
            raise SettingsError(f"Unknown option: {key}")
        if value is not None:
            final[key] = value

    extensions = _to_extension_list(final.get("extensions"))
    if not extensions:
        raise SettingsError("At least one allowed extension is required")
    final["extensions"] = frozenset(extensions)

    if final.get("mode") not in MODES:
        raise SettingsError(f"mode must be one of {', '.join(MODES)}, got {final.get('mode')!r}")

    try:
        final["max_attempts"] = int(final["max_attempts"])
    except (TypeError, ValueError) as e:
        raise SettingsError(f"max_attempts must be an integer: {e}") from e
    if final["max_attempts"] < 1:
        raise SettingsError("max_attempts must be at least 1")

    final["encoding"] = final.get("encoding") or DEFAULT_CONFIG["encoding"]
    # binary and rot13 codecs are found by lookup but cannot encode str
    try:
        "".encode(final["encoding"])
    except (LookupError, TypeError) as e:
        raise SettingsError(f"encoding must be a text encoding: {e}") from e

    return final

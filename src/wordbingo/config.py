from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import InvalidConfigError
from .generator import CardConfig
from .render import StylingConfig
from .units import SizeConfig

ENV_PREFIX = "WORDBINGO_"

PATH_KEYS = ("out_dir", "out_cards", "log_file", "summary_csv")
INT_KEYS = {
    "grid_size",
    "num_cards",
    "seed.value",
    "logo.size",
    "styling.outer_border",
    "styling.grid_line_thickness",
    "styling.cell_padding",
    "styling.rounded_corners",
}
FLOAT_KEYS = {"size.width", "size.height"}
BOOL_KEYS = {"allow_repetition", "logo.show_on_cards", "styling.show_grid_lines"}


def _read_config_file(config_path: Path | None) -> Dict[str, Any]:
    if not config_path:
        return {}
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            raise InvalidConfigError("Top-level YAML config must be a mapping")
        return data
    if suffix == ".json":
        data = json.loads(text)
        if not isinstance(data, dict):
            raise InvalidConfigError("Top-level JSON config must be a mapping")
        return data
    raise InvalidConfigError(f"Unsupported config extension: {suffix}")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_key(cfg_key: str) -> str:
    return ENV_PREFIX + cfg_key.replace(".", "_").upper()


ENV_KEYS = (
    "grid_size",
    "num_cards",
    "allow_repetition",
    "seed.value",
    "seed.engine",
    "size.preset",
    "size.width",
    "size.height",
    "size.unit",
    "layout",
    "page",
    "format",
    "logo.size",
    "logo.show_on_cards",
    "styling.outer_border",
    "styling.outer_border_color",
    "styling.show_grid_lines",
    "styling.grid_line_thickness",
    "styling.grid_line_color",
    "styling.cell_padding",
    "styling.font_color",
    "styling.background_color",
    "styling.rounded_corners",
    "out_dir",
    "out_cards",
    "summary_csv",
    "log_level",
    "log_format",
    "log_file",
)


def _collect_env_vars(env: Mapping[str, str]) -> Dict[str, Any]:
    """Map WORDBINGO_* variables onto dotted config keys.

    WORDBINGO_SEED_VALUE -> seed.value, WORDBINGO_STYLING_FONT_COLOR -> styling.font_color.
    """
    result: Dict[str, Any] = {}
    for cfg_key in ENV_KEYS:
        env_key = _env_key(cfg_key)
        if env_key not in env:
            continue
        raw = env[env_key]
        if cfg_key in INT_KEYS:
            try:
                result[cfg_key] = int(raw)
            except ValueError:
                result[cfg_key] = raw
        elif cfg_key in FLOAT_KEYS:
            try:
                result[cfg_key] = float(raw)
            except ValueError:
                result[cfg_key] = raw
        elif cfg_key in BOOL_KEYS:
            result[cfg_key] = _parse_bool(raw)
        else:
            result[cfg_key] = raw
    return result


def _set_nested(config: Dict[str, Any], dotted_key: str, value: Any) -> None:
    parts = dotted_key.split(".")
    cursor = config
    for part in parts[:-1]:
        if part not in cursor or not isinstance(cursor[part], dict):
            cursor[part] = {}
        cursor = cursor[part]
    cursor[parts[-1]] = value


def _apply_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = json.loads(json.dumps(base))  # deep copy via JSON
    for key, value in overrides.items():
        if "." in key:
            _set_nested(merged, key, value)
        elif isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _apply_overrides(merged[key], value)
        else:
            merged[key] = value
    return merged


def canonical_json_dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=True, sort_keys=True, separators=(",", ":"))


def compute_params_hash(resolved: Mapping[str, Any]) -> str:
    """sha256 over the generation contract only; output and logging keys are ignored."""
    include = ("grid_size", "num_cards", "allow_repetition", "seed.engine", "seed.value")

    def extract(path: str, source: Mapping[str, Any]) -> Any:
        cur: Any = source
        for part in path.split("."):
            if not isinstance(cur, Mapping) or part not in cur:
                return None
            cur = cur[part]
        return cur

    contract: Dict[str, Any] = {}
    for item in include:
        value = extract(item, resolved)
        if value is not None:
            contract[item] = value

    digest = hashlib.sha256(canonical_json_dumps(contract).encode("utf-8")).hexdigest()
    return f"sha256:{digest}"


def resolve_paths(
    resolved: Dict[str, Any],
    config_file: Path | None,
    cli_overrides: Dict[str, Any],
) -> Dict[str, Any]:
    """Normalize paths per policy.

    - Paths from config file: resolve relative to config directory
    - Paths from CLI: resolve relative to CWD
    """
    cwd = Path.cwd()
    cfg_dir = config_file.parent if config_file else None

    def normalize(path_value: str | None, is_cli: bool) -> str | None:
        if path_value is None or path_value == "":
            return None
        p = Path(path_value)
        if p.is_absolute():
            return str(p)
        base = cwd if is_cli else (cfg_dir or cwd)
        return str((base / p).resolve())

    result = dict(resolved)
    cli_keys = {k for k in cli_overrides if k in PATH_KEYS}
    for key in PATH_KEYS:
        value = resolved.get(key)
        if value is None:
            continue
        result[key] = normalize(str(value), key in cli_keys)
    return result


DEFAULTS: Dict[str, Any] = {
    "grid_size": 5,
    "num_cards": 1,
    "allow_repetition": True,
    "seed": {"engine": "py_random", "value": None},
    "size": {"preset": "A4", "width": 600, "height": 800, "unit": "px"},
    "layout": "one-per-page",
    "page": "A4",
    "format": "pdf",
    "logo": {"size": 20, "show_on_cards": False},
    "styling": {},
    "out_dir": ".",
    "out_cards": "cards.json",
    "log_level": "INFO",
    "log_format": "text",
}


def resolve_parameters(
    *,
    config_path_str: str | None,
    cli_overrides: Dict[str, Any],
    env: Mapping[str, str] | None = None,
) -> Tuple[Dict[str, Any], str, Path | None]:
    """Resolve parameters with precedence CLI > ENV > config > defaults.

    Returns (resolved_params, params_hash, config_path)
    """
    config_path = Path(config_path_str).resolve() if config_path_str else None
    file_cfg = _read_config_file(config_path) if config_path else {}
    env_map = _collect_env_vars(os.environ if env is None else env)

    merged = _apply_overrides(DEFAULTS, file_cfg)
    merged = _apply_overrides(merged, env_map)
    merged = _apply_overrides(merged, cli_overrides)

    merged = resolve_paths(merged, config_path, cli_overrides)

    params_hash = compute_params_hash(merged)
    return merged, params_hash, config_path


def card_config_from(resolved: Mapping[str, Any]) -> CardConfig:
    try:
        config = CardConfig(
            grid_size=int(resolved["grid_size"]),
            num_cards=int(resolved["num_cards"]),
            allow_repetition=bool(resolved.get("allow_repetition", True)),
        )
    except (TypeError, ValueError) as e:
        raise InvalidConfigError(f"Invalid card settings: {e}") from e
    return config.validate()


def seed_from(resolved: Mapping[str, Any]) -> Tuple[Optional[int], str]:
    seed = resolved.get("seed") or {}
    value = seed.get("value")
    try:
        return (None if value is None else int(value)), str(seed.get("engine") or "py_random")
    except (TypeError, ValueError) as e:
        raise InvalidConfigError(f"Invalid seed value: {value!r}") from e


def size_config_from(resolved: Mapping[str, Any]) -> SizeConfig:
    size = dict(resolved.get("size") or {})
    preset = str(size.get("preset", "A4"))
    unit = str(size.get("unit", "px"))
    try:
        if preset.lower() == "custom":
            return SizeConfig(preset="Custom", width=float(size["width"]), height=float(size["height"]), unit=unit)
        return SizeConfig.from_preset(preset, unit)
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidConfigError(f"Invalid card size: {e}") from e


def styling_config_from(resolved: Mapping[str, Any]) -> StylingConfig:
    styling = dict(resolved.get("styling") or {})
    known = set(StylingConfig.__dataclass_fields__)
    unknown = sorted(set(styling) - known)
    if unknown:
        raise InvalidConfigError(f"Unknown styling keys: {', '.join(unknown)}")
    return StylingConfig(**styling)

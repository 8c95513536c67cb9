from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from goldbot.config.settings import (
    COMMAND_PREFIX,
    COMMIT_RETRIES,
    DAILY_COOLDOWN_HOURS,
    DAY_MS,
    DIG_COOLDOWN_MINUTES,
    FISH_COOLDOWN_MINUTES,
    HISTORY_LIMIT,
    HISTORY_PAGE_SIZE,
    HOUR_MS,
    MINUTE_MS,
    WEEKLY_COOLDOWN_DAYS,
    WORK_COOLDOWN_MINUTES,
)
from goldbot.db.database import ConnectionFactory, get_connection
from goldbot.db.repositories import get_state_value, set_state_value


@dataclass(frozen=True)
class AppConfigSpec:
    default: Any
    cast: Callable[[str], Any]
    description: str


APP_CONFIG_SPECS: dict[str, AppConfigSpec] = {
    "COMMAND_PREFIX": AppConfigSpec(
        default=str(COMMAND_PREFIX),
        cast=str,
        description="Prefix that marks a chat message as an economy command.",
    ),
    "DIG_COOLDOWN_MINUTES": AppConfigSpec(
        default=int(DIG_COOLDOWN_MINUTES),
        cast=int,
        description="Minutes between dig claims.",
    ),
    "FISH_COOLDOWN_MINUTES": AppConfigSpec(
        default=int(FISH_COOLDOWN_MINUTES),
        cast=int,
        description="Minutes between fish claims.",
    ),
    "WORK_COOLDOWN_MINUTES": AppConfigSpec(
        default=int(WORK_COOLDOWN_MINUTES),
        cast=int,
        description="Minutes between work shifts.",
    ),
    "DAILY_COOLDOWN_HOURS": AppConfigSpec(
        default=int(DAILY_COOLDOWN_HOURS),
        cast=int,
        description="Hours between daily bonuses.",
    ),
    "WEEKLY_COOLDOWN_DAYS": AppConfigSpec(
        default=int(WEEKLY_COOLDOWN_DAYS),
        cast=int,
        description="Days between weekly bonuses.",
    ),
    "HISTORY_LIMIT": AppConfigSpec(
        default=int(HISTORY_LIMIT),
        cast=int,
        description="History rows kept per account; <=0 keeps everything.",
    ),
    "HISTORY_PAGE_SIZE": AppConfigSpec(
        default=int(HISTORY_PAGE_SIZE),
        cast=int,
        description="History entries shown per request.",
    ),
    "COMMIT_RETRIES": AppConfigSpec(
        default=int(COMMIT_RETRIES),
        cast=int,
        description="Commit attempts before a write conflict is reported as a failure.",
    ),
}

# action -> (config name, milliseconds per configured unit)
EARNING_COOLDOWN_CONFIG: dict[str, tuple[str, int]] = {
    "dig": ("DIG_COOLDOWN_MINUTES", MINUTE_MS),
    "fish": ("FISH_COOLDOWN_MINUTES", MINUTE_MS),
    "work": ("WORK_COOLDOWN_MINUTES", MINUTE_MS),
    "daily": ("DAILY_COOLDOWN_HOURS", HOUR_MS),
    "weekly": ("WEEKLY_COOLDOWN_DAYS", DAY_MS),
}


def _state_key(name: str) -> str:
    return f"config:{name}"


def _normalize(name: str, value: Any) -> Any:
    if name == "COMMAND_PREFIX":
        text = str(value).strip()
        return text or str(COMMAND_PREFIX)
    if name in {config_name for config_name, _ in EARNING_COOLDOWN_CONFIG.values()}:
        return max(1, int(value))
    if name == "HISTORY_LIMIT":
        return int(value)
    if name == "HISTORY_PAGE_SIZE":
        return max(1, min(50, int(value)))
    if name == "COMMIT_RETRIES":
        return max(1, int(value))
    return value


def _to_string(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.12g}"
    return str(value)


def ensure_app_config_defaults(connection_factory: ConnectionFactory = get_connection) -> None:
    for name, spec in APP_CONFIG_SPECS.items():
        if get_state_value(_state_key(name), connection_factory=connection_factory) is None:
            set_state_value(
                _state_key(name),
                _to_string(_normalize(name, spec.default)),
                connection_factory=connection_factory,
            )


def get_app_config(name: str, connection_factory: ConnectionFactory = get_connection) -> Any:
    spec = APP_CONFIG_SPECS.get(name)
    if spec is None:
        raise KeyError(f"Unknown app config: {name}")
    raw = get_state_value(_state_key(name), connection_factory=connection_factory)
    if raw is None:
        return _normalize(name, spec.default)
    try:
        parsed = spec.cast(str(raw))
    except (TypeError, ValueError):
        parsed = spec.default
    return _normalize(name, parsed)


def set_app_config(name: str, value: Any, connection_factory: ConnectionFactory = get_connection) -> Any:
    spec = APP_CONFIG_SPECS.get(name)
    if spec is None:
        raise KeyError(f"Unknown app config: {name}")
    normalized = _normalize(name, spec.cast(str(value)))
    set_state_value(_state_key(name), _to_string(normalized), connection_factory=connection_factory)
    return normalized


def get_all_app_configs(connection_factory: ConnectionFactory = get_connection) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for name, spec in APP_CONFIG_SPECS.items():
        rows.append(
            {
                "name": name,
                "value": get_app_config(name, connection_factory),
                "default": _normalize(name, spec.default),
                "type": spec.cast.__name__,
                "description": spec.description,
            }
        )
    return rows


def earning_period_ms(action: str, connection_factory: ConnectionFactory = get_connection) -> int:
    entry = EARNING_COOLDOWN_CONFIG.get(action)
    if entry is None:
        raise KeyError(f"Unknown earning action: {action}")
    name, unit_ms = entry
    return int(get_app_config(name, connection_factory)) * unit_ms

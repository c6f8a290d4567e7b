from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

from hollow.invariants import never

DEFAULT_CONFIG_NAME = "hollow.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

ACCESS_POLICIES = ("narrowest", "widest")
PLAN_ORDERS = ("derived_first", "base_first")


@dataclass(frozen=True)
class ClassifierConfig:
    require_empty_body: bool = False
    access_policy: str = "narrowest"
    skip_malformed: bool = True

    def __post_init__(self) -> None:
        if self.access_policy not in ACCESS_POLICIES:
            never(
                "unknown access policy",
                access_policy=self.access_policy,
                allowed=list(ACCESS_POLICIES),
            )


@dataclass(frozen=True)
class PassConfig:
    workers: int = 1
    timeout_ms: int = 120_000
    gas_limit: int | None = 100_000_000
    classifier: ClassifierConfig = ClassifierConfig()

    def __post_init__(self) -> None:
        if self.workers < 1:
            never("workers must be at least 1", workers=self.workers)


@dataclass(frozen=True)
class PlanConfig:
    order: str = "derived_first"

    def __post_init__(self) -> None:
        if self.order not in PLAN_ORDERS:
            never("unknown plan order", order=self.order, allowed=list(PLAN_ORDERS))


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def _section(data: TomlTable, name: str) -> TomlTable:
    section = data.get(name, {})
    return section if isinstance(section, dict) else {}


def classify_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return _section(load_config(root=root, config_path=config_path), "classify")


def pass_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return _section(load_config(root=root, config_path=config_path), "pass")


def plan_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return _section(load_config(root=root, config_path=config_path), "plan")


def _as_bool(value: TomlValue, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return default


def _as_int(value: TomlValue, default: int | None) -> int | None:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return default


def _as_choice(value: TomlValue, choices: tuple[str, ...], default: str) -> str:
    if isinstance(value, str):
        normalized = value.strip().lower().replace("-", "_")
        if normalized in choices:
            return normalized
    return default


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def classifier_config(section: TomlTable | None) -> ClassifierConfig:
    section = section if isinstance(section, dict) else {}
    return ClassifierConfig(
        require_empty_body=_as_bool(section.get("require_empty_body"), False),
        access_policy=_as_choice(section.get("access_policy"), ACCESS_POLICIES, "narrowest"),
        skip_malformed=_as_bool(section.get("skip_malformed"), True),
    )


def pass_config(
    section: TomlTable | None,
    classify_section: TomlTable | None = None,
) -> PassConfig:
    section = section if isinstance(section, dict) else {}
    workers = _as_int(section.get("workers"), 1) or 1
    timeout_ms = _as_int(section.get("timeout_ms"), 120_000)
    gas_limit = _as_int(section.get("gas_limit"), 100_000_000)
    return PassConfig(
        workers=max(workers, 1),
        timeout_ms=timeout_ms if timeout_ms is not None else 120_000,
        gas_limit=gas_limit if gas_limit else None,
        classifier=classifier_config(classify_section),
    )


def plan_config(section: TomlTable | None) -> PlanConfig:
    section = section if isinstance(section, dict) else {}
    return PlanConfig(order=_as_choice(section.get("order"), PLAN_ORDERS, "derived_first"))

from __future__ import annotations

from rich import print

from fragmentctl.config import (
    CONFIG_ENV_OVERRIDES,
    SECRET_KEYS,
    FragmentsConfig,
    get_config_path,
    get_env_overrides,
)

from .common import fail, read_config_or_exit, write_config_or_exit


def config_show_cmd(cfg: FragmentsConfig) -> None:
    """Print the effective configuration with secrets masked."""

    print(f"config: {get_config_path()}")
    for key, value in cfg.redacted().items():
        print(f"{key} = {value!r}")
    overrides = get_env_overrides()
    if overrides:
        names = ", ".join(CONFIG_ENV_OVERRIDES[key] for key in sorted(overrides))
        print(f"env overrides: {names}")


def config_set_cmd(*, key: str, value: str) -> None:
    """Persist one configuration value."""

    if key not in CONFIG_ENV_OVERRIDES:
        raise fail(f"Unknown config key: {key}")
    data = read_config_or_exit()
    data[key] = value
    write_config_or_exit(data)
    shown = "***" if key in SECRET_KEYS else value
    print(f"Set {key} = {shown!r}")

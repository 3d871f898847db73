"""Config commands -- view and modify global configuration.

Provides the ``ramlkit config`` sub-command group for reading, updating,
and resetting the user's global configuration file
(:class:`~ramlkit.models.GlobalConfig`). Settings are persisted in the
ramlkit config directory and control defaults such as the HTTP timeout used
for remote documents and the output format.
"""

from __future__ import annotations

from typing import Any

import typer

from ramlkit.exit_codes import EXIT_INVALID_USAGE
from ramlkit.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration.

    Prints the config directory path followed by the configuration after
    every precedence layer (file, project, environment, flags) is applied.

    Example::

        ramlkit config show
        ramlkit --json config show
    """
    from ramlkit.config import get_config_dir, resolve_config

    config = ctx.obj.get("config") if ctx.obj else None
    if config is None:
        config = resolve_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


def _coerce(key: str, current: Any, value: str) -> Any:
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, (int, float)):
        try:
            return type(current)(value)
        except ValueError:
            error(f"Expected a number for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    return value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key (dot notation, e.g., 'fetch.timeout')."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type and validated against
    :class:`~ramlkit.models.GlobalConfig` before saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        ramlkit config set fetch.timeout 10
        ramlkit config set output.format json
        ramlkit config set fetch.verify_ssl false
    """
    from pydantic import ValidationError

    from ramlkit.config import load_global_config, save_global_config
    from ramlkit.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    coerced = _coerce(key, target[final_key], value)
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Reset configuration to defaults.

    Replaces the persisted global config with a fresh
    :class:`~ramlkit.models.GlobalConfig`. Asks for confirmation unless
    ``--yes`` is given.

    Example::

        ramlkit config reset
        ramlkit config reset --yes
    """
    from ramlkit.config import save_global_config
    from ramlkit.models import GlobalConfig

    if not yes and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")

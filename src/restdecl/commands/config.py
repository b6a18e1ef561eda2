"""Config commands -- view and modify the global configuration.

Provides the ``restdecl config`` group for reading, updating, and resetting
:class:`~restdecl.models.GlobalConfig`.
"""

from __future__ import annotations

import json

import typer

from restdecl.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration (all layers resolved)."""
    from restdecl.config import get_config_dir, resolve_config
    from restdecl.exceptions import ConfigError

    try:
        config = resolve_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key in dot notation, e.g. 'client.retry.max_attempts'."),
    value: str = typer.Argument(help="Value to set; JSON literals are accepted."),
) -> None:
    """Set a value in the global configuration file.

    The value is parsed as JSON when possible (``5``, ``true``, ``[429]``)
    and kept as a string otherwise. The result is validated before saving.

    Example::

        restdecl config set client.base_url https://github.example.com/api/v3
        restdecl config set client.transient_statuses "[429]"
    """
    from restdecl.config import load_global_config, save_global_config
    from restdecl.exceptions import ConfigError
    from restdecl.models import GlobalConfig

    try:
        data = load_global_config().model_dump(mode="json")
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if not isinstance(target.get(k), dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]
    if keys[-1] not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    target[keys[-1]] = parsed

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {parsed}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset the global configuration to defaults.

    Asks for confirmation unless ``--force`` is active.
    """
    from restdecl.config import save_global_config
    from restdecl.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")

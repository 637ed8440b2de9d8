"""Config commands -- view and modify global configuration.

Provides the ``pluggable config`` sub-command group for reading, updating
and resetting the user's global configuration file
(:class:`~pluggable.models.GlobalConfig`).
"""

from __future__ import annotations

import typer

from pluggable.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS
from pluggable.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration after all precedence layers.

    Example::

        pluggable config show --json
    """
    from pluggable.config import get_config_dir, resolve_config
    from pluggable.exceptions import ConfigError

    try:
        config = resolve_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'dispatch.method_prefix')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a value in the global configuration file.

    Raises:
        typer.Exit: With ``EXIT_INVALID_USAGE`` if the key path is unknown
            or the new configuration fails validation.

    Example::

        pluggable config set dispatch.method_prefix do_
        pluggable config set log_level DEBUG
    """
    from pluggable.config import load_global_config, save_global_config
    from pluggable.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if not isinstance(target.get(k), dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    target[final_key] = value

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {value}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset the global configuration to defaults."""
    from pluggable.config import save_global_config
    from pluggable.models import GlobalConfig

    if not force and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit(code=EXIT_SUCCESS)

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")

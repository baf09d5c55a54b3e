"""Config commands -- view and modify global configuration.

Provides the ``pagecache config`` sub-command group for reading, updating
and resetting the user's global configuration file
(:class:`~pagecache.models.GlobalConfig`): cache directory, TTL, footer
template and output preferences.
"""

from __future__ import annotations

import typer

from pagecache.exceptions import ConfigError
from pagecache.output import error, info, print_record, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(
    resolved: bool = typer.Option(
        False,
        "--resolved",
        help="Show the effective config (env vars and ./pagecache.json applied).",
    ),
) -> None:
    """Show current configuration.

    Example::

        pagecache config show
        pagecache --json config show --resolved
    """
    from pagecache.config import get_config_dir, load_global_config, resolve_config

    try:
        config = resolve_config() if resolved else load_global_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config directory: {get_config_dir()}")
    print_record(config.model_dump(mode="json"), title="Configuration")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'cache.ttl_seconds')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type (bool, int, or str) and the result is validated
    against :class:`~pagecache.models.GlobalConfig` before saving.

    Example::

        pagecache config set cache.ttl_seconds 3600
        pagecache config set cache.directory /var/cache/blog
        pagecache config set cache.footer.template "<!-- {elapsed}ms {timestamp} -->"
    """
    from pagecache.config import load_global_config, save_global_config
    from pagecache.models import GlobalConfig

    try:
        config = load_global_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    current = target[final_key]
    if isinstance(current, bool):
        coerced: object = value.lower() in ("true", "1", "yes", "on")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    else:
        coerced = value

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        pagecache --force config reset
    """
    from pagecache.config import save_global_config
    from pagecache.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")

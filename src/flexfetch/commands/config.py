"""Config commands -- view and change the global configuration.

Provides the ``flexfetch config`` sub-command group. Settings are read
from the flexfetch config directory and overlaid with environment
variables (``FLEXFETCH_ENDPOINT``, ``FLEXFETCH_PROJECT``); ``set`` only
ever writes the file.
"""

from __future__ import annotations

import typer

from flexfetch.exit_codes import EXIT_INVALID_USAGE
from flexfetch.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration.

    Prints the config directory path followed by the resolved
    configuration, after environment overrides.

    Example::

        flexfetch config show
        flexfetch --json config show
    """
    from flexfetch.config import get_config_dir, resolve_config

    config = resolve_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Dotted key, e.g. 'request.max_retries' or 'output.format'."),
    value: str = typer.Argument(help="New value; converted to the field's type."),
) -> None:
    """Change one setting in the config file.

    The value is validated against the whole configuration before
    anything is written, so ``request.max_retries 0`` or
    ``output.format yaml`` leave the file untouched and exit with code 2.

    Example::

        flexfetch config set endpoint https://flex.example.com
        flexfetch config set request.retry_delay 0.5
        flexfetch config set cache.enabled false
    """
    from pydantic import ValidationError

    from flexfetch.config import load_global_config, save_global_config
    from flexfetch.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    *sections, field = key.split(".")
    target = data
    for section in sections:
        target = target.get(section)
        if not isinstance(target, dict):
            break
    if not isinstance(target, dict) or field not in target or isinstance(target[field], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    # Pydantic's lax mode turns "5", "0.5" and "false" into the field's type.
    target[field] = value
    try:
        config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        reason = exc.errors()[0]["msg"]
        error(f"Invalid value for {key}: {reason}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(config)
    success(f"Set {key} = {value}")

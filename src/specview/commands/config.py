"""``specview config`` -- inspect and edit the global configuration file.

Keys are addressed with dots (``resolver.timeout_seconds``).  Values typed
on the command line are converted to the type of the field they replace
and the whole :class:`~specview.models.GlobalConfig` is re-validated
before anything is written.
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from specview.commands.source import exit_on_error
from specview.config import get_config_dir, load_global_config, save_global_config
from specview.exit_codes import EXIT_INVALID_USAGE
from specview.models import GlobalConfig
from specview.output import error, get_output, info, success

config_app = typer.Typer(no_args_is_help=True)

_TRUTHY = frozenset({"true", "1", "yes", "on"})


def _usage_error(message: str) -> typer.Exit:
    error(message)
    return typer.Exit(code=EXIT_INVALID_USAGE)


def _section_for(data: dict[str, Any], key: str) -> tuple[dict[str, Any], str]:
    """Walk *data* along the dotted *key* and return ``(section, leaf name)``."""
    *parents, leaf = key.split(".")
    section = data
    for name in parents:
        child = section.get(name)
        if not isinstance(child, dict):
            raise _usage_error(f"Invalid config key: {key}")
        section = child
    if leaf not in section or isinstance(section[leaf], dict):
        raise _usage_error(f"Unknown config key: {key}")
    return section, leaf


def _convert(key: str, raw: str, like: Any) -> Any:
    if isinstance(like, bool):
        return raw.strip().lower() in _TRUTHY
    if isinstance(like, (int, float)):
        try:
            return float(raw)
        except ValueError:
            raise _usage_error(f"Expected a number for {key}, got: {raw}") from None
    return raw


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration.

    Example::

        specview config show
        specview --json config show
    """
    with exit_on_error():
        current = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    get_output().print_structured(current.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Dotted key, e.g. 'resolver.timeout_seconds'."),
    value: str = typer.Argument(help="New value."),
) -> None:
    """Change one setting.

    Example::

        specview config set resolver.timeout_seconds 10
        specview config set resolver.validate_schema false
        specview config set layout.row_height 60
    """
    with exit_on_error():
        data = load_global_config().model_dump(mode="json")

    section, leaf = _section_for(data, key)
    section[leaf] = _convert(key, value, section[leaf])

    try:
        updated = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise _usage_error(f"Validation error: {exc}") from None

    save_global_config(updated)
    success(f"Set {key} = {section[leaf]}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Do not ask for confirmation."),
) -> None:
    """Restore every setting to its default."""
    if not force and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()
    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")

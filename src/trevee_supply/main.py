"""CLI entrypoint for the supply service."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer

from .domain import GlobalSupplySnapshot, TotalSupplyPolicy
from .errors import SupplyError
from .logger import get_logger, setup_logging
from .settings import SupplySettings
from .state import AppState, build_state

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Multi-chain circulating and total supply API.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to a TOML config file (can include [trevee_supply] table).",
    ),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    ),
]
PolicyOption = Annotated[
    TotalSupplyPolicy | None,
    typer.Option(
        "--total-supply-policy",
        help="How total supply is aggregated: sum of chains or the canonical chain.",
    ),
]
ShowConfigOption = Annotated[
    bool,
    typer.Option(
        "--show-config",
        help="Print effective config (with secrets redacted) and exit.",
    ),
]


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return get_logger("trevee_supply")


def _load_state(
    config_path: Path | None,
    show_config: bool,
    **overrides: object,
) -> AppState:
    """Load settings (CLI > ENV > FILE), configure logging and wire the state."""
    if config_path:
        os.environ["TREVEE_SUPPLY_CONFIG"] = str(config_path)

    init_kwargs = {key: value for key, value in overrides.items() if value is not None}
    if "log_level" in init_kwargs:
        init_kwargs["log_level"] = str(init_kwargs["log_level"]).upper()

    try:
        settings = SupplySettings(**init_kwargs)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    setup_logging(settings.log_level)
    return build_state(settings, _build_logger())


@app.command()
def serve(
    config_path: ConfigOption = None,
    host: Annotated[
        str | None, typer.Option("--host", help="Interface to bind.")
    ] = None,
    port: Annotated[
        int | None, typer.Option("--port", "-p", help="Port to listen on.")
    ] = None,
    total_supply_policy: PolicyOption = None,
    log_level: LogLevelOption = None,
    show_config: ShowConfigOption = False,
):
    """Serve the supply endpoints over HTTP."""
    import uvicorn

    from .api import create_app

    state = _load_state(
        config_path,
        show_config,
        host=host,
        port=port,
        total_supply_policy=total_supply_policy,
        log_level=log_level,
    )
    settings = state.settings
    state.logger.info(
        "Listening on %s:%d (token %s, %d excluded addresses)",
        settings.host,
        settings.port,
        settings.token_address,
        len(settings.all_excluded_addresses),
    )
    uvicorn.run(
        create_app(state),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


async def _fetch_once(state: AppState) -> GlobalSupplySnapshot:
    try:
        return await state.fetch_snapshot()
    finally:
        await state.aclose()


@app.command()
def fetch(
    config_path: ConfigOption = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the detailed breakdown as JSON."),
    ] = False,
    total_supply_policy: PolicyOption = None,
    log_level: LogLevelOption = None,
    show_config: ShowConfigOption = False,
):
    """Fetch supply from every chain once, bypassing the cache."""
    from .report import build_breakdown, format_supply_table

    state = _load_state(
        config_path,
        show_config,
        total_supply_policy=total_supply_policy,
        log_level=log_level,
    )
    settings = state.settings

    try:
        snapshot = asyncio.run(_fetch_once(state))
    except SupplyError as e:
        state.logger.error("Supply fetch failed: %s", e)
        raise typer.Exit(code=1) from e

    excluded = list(settings.all_excluded_addresses)
    if as_json:
        breakdown = build_breakdown(
            snapshot,
            token_address=settings.token_address,
            excluded_addresses=excluded,
        )
        typer.echo(json.dumps(breakdown, indent=2))
    else:
        format_supply_table(snapshot, settings.token_address, excluded)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()

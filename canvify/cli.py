from __future__ import annotations

import json
import logging
from pathlib import Path

import click
import colorama
import uvicorn

from . import __version__
from .api.constants import TOTP_SECRETS_REFRESH_INTERVAL, TOTP_SECRETS_URL
from .constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_TOKEN_REFRESH_INTERVAL,
    EXCLUDED_CONFIG_FILE_PARAMS,
)
from .custom_formatter import CustomFormatter
from .server import Config, create_app

logger = logging.getLogger("canvify")


def get_param_string(param: click.Parameter):
    if isinstance(param.default, Path):
        return str(param.default)
    else:
        return param.default


def write_default_config_file(ctx: click.Context) -> None:
    ctx.params["config_path"].parent.mkdir(parents=True, exist_ok=True)
    config_file = {
        param.name: get_param_string(param)
        for param in ctx.command.params
        if param.name not in EXCLUDED_CONFIG_FILE_PARAMS
    }
    ctx.params["config_path"].write_text(json.dumps(config_file, indent=4))


def load_config_file(
    ctx: click.Context,
    param: click.Parameter,
    no_config_file: bool,
) -> click.Context:
    if no_config_file:
        return ctx
    if not ctx.params["config_path"].exists():
        write_default_config_file(ctx)
    config_file = dict(json.loads(ctx.params["config_path"].read_text()))
    for param in ctx.command.params:
        if config_file.get(param.name) is not None and ctx.get_parameter_source(
            param.name
        ) not in (
            click.core.ParameterSource.COMMANDLINE,
            click.core.ParameterSource.ENVIRONMENT,
        ):
            ctx.params[param.name] = param.type_cast_value(ctx, config_file[param.name])
    return ctx


@click.command()
@click.help_option("-h", "--help")
@click.version_option(__version__, "-v", "--version")
@click.option(
    "--sp-dc",
    type=str,
    envvar="SP_DC",
    default=None,
    help="Value of the 'sp_dc' session cookie from open.spotify.com.",
)
@click.option(
    "--host",
    type=str,
    envvar="HOST",
    default=DEFAULT_HOST,
    help="Address to listen on.",
)
@click.option(
    "--port",
    "-p",
    type=int,
    envvar="PORT",
    default=DEFAULT_PORT,
    help="Port to listen on.",
)
@click.option(
    "--token-refresh-interval",
    type=float,
    default=DEFAULT_TOKEN_REFRESH_INTERVAL,
    help="Interval between access token refreshes in seconds.",
)
@click.option(
    "--secrets-refresh-interval",
    type=float,
    default=TOTP_SECRETS_REFRESH_INTERVAL,
    help="Minimum interval between TOTP secret table fetches in seconds.",
)
@click.option(
    "--secrets-url",
    type=str,
    default=TOTP_SECRETS_URL,
    help="URL of the TOTP secret table.",
)
@click.option(
    "--stream-canvas",
    is_flag=True,
    help="Stream canvas videos instead of redirecting to them.",
)
@click.option(
    "--fallback-redirect-url",
    type=str,
    default=None,
    help="Redirect unknown paths to this URL.",
)
@click.option(
    "--log-level",
    type=str,
    default="INFO",
    help="Log level.",
)
@click.option(
    "--config-path",
    type=Path,
    default=DEFAULT_CONFIG_PATH,
    help="Path to config file.",
)
# This option should always be last
@click.option(
    "--no-config-file",
    "-n",
    is_flag=True,
    callback=load_config_file,
    help="Do not use a config file.",
)
def main(
    sp_dc: str,
    host: str,
    port: int,
    token_refresh_interval: float,
    secrets_refresh_interval: float,
    secrets_url: str,
    stream_canvas: bool,
    fallback_redirect_url: str,
    log_level: str,
    config_path: Path,
    no_config_file: bool,
) -> None:
    colorama.just_fix_windows_console()
    logger.setLevel(log_level)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(CustomFormatter())
    logger.addHandler(stream_handler)
    logger.info("Starting Canvify")
    app = create_app(
        Config(
            sp_dc=sp_dc,
            host=host,
            port=port,
            token_refresh_interval=token_refresh_interval,
            secrets_refresh_interval=secrets_refresh_interval,
            secrets_url=secrets_url,
            stream_canvas=stream_canvas,
            fallback_redirect_url=fallback_redirect_url,
        )
    )
    logger.info(f"Server running at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=log_level.lower())

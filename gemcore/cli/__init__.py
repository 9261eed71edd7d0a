"""gemcore 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os

import click

from gemcore import __version__
from gemcore.core.config import DEFAULT_CONFIG_FILE, Config
from gemcore.core.exceptions import ConfigError
from gemcore.utils.logger import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default=DEFAULT_CONFIG_FILE,
              help="配置文件路径")
@click.pass_context
def main(ctx: click.Context, config_path: str) -> None:
    """gemcore - 软件包安装工具"""
    setup_logging(
        level=os.getenv("GEMCORE_LOG_LEVEL", "WARNING"),
        json_output=os.getenv("GEMCORE_LOG_JSON", "") == "1",
    )
    try:
        ctx.obj = Config.from_file(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


from gemcore.cli.cmd_install import register as _reg_install  # noqa: E402

_reg_install(main)

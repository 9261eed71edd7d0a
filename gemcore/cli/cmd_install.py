"""CLI：安装、解压、列出已安装包"""

from __future__ import annotations

import click

from gemcore.core.config import Config
from gemcore.core.exceptions import GemCoreError
from gemcore.core.source_index import SourceIndex
from gemcore.services.install import InstallOptions, SecurityPolicy
from gemcore.services.install_service import Installer


def register(group: click.Group) -> None:
    group.add_command(install)
    group.add_command(unpack)
    group.add_command(list_installed)


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("archive", type=click.Path(exists=True, dir_okay=False))
@click.argument("build_args", nargs=-1, type=click.UNPROCESSED)
@click.option("--install-dir", "-i", default="", help="安装根目录（默认取配置）")
@click.option("--bindir", "-n", default="", help="可执行入口目录")
@click.option("--force", "-f", is_flag=True, help="跳过版本与依赖检查")
@click.option("--ignore-dependencies", is_flag=True, help="不检查依赖是否已安装")
@click.option("--wrappers/--no-wrappers", default=None,
              help="生成包装脚本（否则使用符号链接）")
@click.option("--env-shebang/--no-env-shebang", default=None,
              help="包装脚本使用 #!/usr/bin/env")
@click.option("--only-signed", is_flag=True, help="只接受已签名的包")
@click.option("--signature", type=click.Choice(["valid", "invalid", "none"]),
              default=None, help="外部签名校验结论")
@click.pass_obj
def install(
    cfg: Config, archive: str, build_args: tuple[str, ...], install_dir: str,
    bindir: str, force: bool, ignore_dependencies: bool,
    wrappers: bool | None, env_shebang: bool | None,
    only_signed: bool, signature: str | None,
) -> None:
    """安装包归档（ARCHIVE -- 之后的参数传给扩展构建）"""
    policy = None
    if only_signed or signature is not None:
        verdict = {"valid": True, "invalid": False}.get(signature or "none")
        policy = SecurityPolicy(only_signed=only_signed, verdict=verdict)

    opts = InstallOptions(
        force=force,
        install_dir=install_dir,
        ignore_dependencies=ignore_dependencies,
        security_policy=policy,
        wrappers=cfg.wrappers if wrappers is None else wrappers,
        env_shebang=cfg.env_shebang if env_shebang is None else env_shebang,
        bin_dir=bindir,
        build_args=list(build_args),
    )
    try:
        record = Installer(archive, opts, config=cfg).install()
    except GemCoreError as e:
        raise click.ClickException(f"安装 {archive} 失败:\n\t{e}") from e
    click.echo(f"安装成功: {record.full_name}")


@click.command()
@click.argument("archive", type=click.Path(exists=True, dir_okay=False))
@click.option("--target", "-t", default=".", help="解压目标目录")
@click.pass_obj
def unpack(cfg: Config, archive: str, target: str) -> None:
    """只把包内容解压到目标目录"""
    try:
        files = Installer(archive, config=cfg).unpack(target)
    except GemCoreError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"已解压 {len(files)} 个文件到 {target}")


@click.command(name="list")
@click.option("--install-dir", "-i", default="", help="安装根目录（默认取配置）")
@click.pass_obj
def list_installed(cfg: Config, install_dir: str) -> None:
    """列出已安装的包"""
    root = install_dir or str(cfg.install_root())
    index = SourceIndex.from_installed([root, *cfg.gem_path])
    specs = index.all_specs()
    if not specs:
        click.echo("没有已安装的包。")
        return
    for spec in specs:
        click.echo(f"  {spec.name:24s} {spec.version!s:12s} {spec.summary}")

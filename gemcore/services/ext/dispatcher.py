"""扩展构建调度

逐个处理 spec.extensions:
  - 按文件名选择构建器；无法识别的描述文件记一条诊断，不中断安装
  - 切换到描述文件所在目录执行构建，任何退出路径都恢复原工作目录
  - 构建失败时把输出写入该目录下的 gem_make.out，并抛 ExtensionBuildError；
    已解压的文件保留供排查
  - 一次安装最多执行一个 rake 构建器：它执行后剩余的描述文件全部跳过
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from gemcore.core.exceptions import BuildError, ExtensionBuildError
from gemcore.core.models import Specification
from gemcore.core.protocols import Builder, UserInteraction
from gemcore.services.ext.builders import BuilderKind, classify, get_builder
from gemcore.utils.fs import working_directory

logger = logging.getLogger(__name__)

LOG_FILE = "gem_make.out"


@dataclass
class ExtensionResult:
    """单个扩展的构建结果"""

    extension: str
    kind: BuilderKind
    status: str  # "success", "no_builder"
    output: list[str] = field(default_factory=list)


class ExtensionBuilder:
    """扩展构建调度器"""

    def __init__(
        self,
        ui: UserInteraction,
        builder_factory: Callable[[BuilderKind], Builder | None] | None = None,
    ) -> None:
        self.ui = ui
        self.builder_factory = builder_factory or get_builder

    def build_extensions(
        self, directory: Path, spec: Specification,
    ) -> list[ExtensionResult]:
        if not spec.extensions:
            return []

        self.ui.say("正在构建原生扩展，可能需要一段时间...")
        dest_path = directory / spec.require_paths[0]
        outcomes: list[ExtensionResult] = []
        ran_rake = False

        for extension in spec.extensions:
            if ran_rake:
                # 兼容行为: rake 构建器执行过后，剩余扩展一律不再构建
                logger.info("已执行过 rake 构建，跳过: %s", extension)
                break

            kind = classify(extension)
            if kind is BuilderKind.UNKNOWN:
                message = f"没有可用于扩展 '{extension}' 的构建器"
                self.ui.alert_warning(message)
                outcomes.append(ExtensionResult(
                    extension=extension, kind=kind,
                    status="no_builder", output=[message],
                ))
                continue
            if kind is BuilderKind.TASK_RUNNER:
                ran_rake = True

            builder = self.builder_factory(kind)
            if builder is None:
                raise ExtensionBuildError(f"构建器不可用: {kind.value}")
            output = self._build_one(builder, extension, directory, dest_path)
            outcomes.append(ExtensionResult(
                extension=extension, kind=kind, status="success", output=output,
            ))
            logger.info("扩展构建完成: %s (%s)", extension, kind.value)

        return outcomes

    def _build_one(
        self, builder: Builder, extension: str, directory: Path, dest_path: Path,
    ) -> list[str]:
        results: list[str] = []
        build_dir = directory / os.path.dirname(extension)
        if not build_dir.is_dir():
            results.append(f"扩展目录不存在: {build_dir}")
            raise self._failure(directory, directory, results)

        with working_directory(build_dir) as cwd:
            try:
                return builder.build(extension, directory, dest_path, results)
            except BuildError as e:
                output = [*(e.output or results), str(e)]
                raise self._failure(directory, cwd, output) from e
            except Exception as e:
                # 注入的构建器抛出任何异常都按构建失败处理
                output = [*results, f"{type(e).__name__}: {e}"]
                raise self._failure(directory, cwd, output) from e

    def _failure(
        self, directory: Path, log_dir: Path, output: list[str],
    ) -> ExtensionBuildError:
        """写出构建日志并构造 ExtensionBuildError"""
        text = "\n".join(output)
        log_path = log_dir / LOG_FILE
        log_path.write_text(text + "\n", encoding="utf-8")

        message = (
            "错误: 原生扩展构建失败。\n\n"
            f"{text}\n\n"
            f"包文件保留在 {directory} 供排查。\n"
            f"构建日志: {log_path}\n"
        )
        logger.error("扩展构建失败，日志: %s", log_path)
        return ExtensionBuildError(
            message, output=text, log_path=str(log_path),
            install_dir=str(directory),
        )

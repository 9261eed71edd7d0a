"""依赖闸门

在任何文件系统改动之前检查:
  1. 运行时版本约束
  2. 工具（gemcore）版本约束
  3. 每个依赖是否已被已安装包满足（可用 ignore_dependencies 跳过）

force 由编排器处理：force 时整个闸门被跳过，但签名策略
only_signed 仍然生效（见 check_security）。
"""

from __future__ import annotations

import logging

from gemcore.core.exceptions import IncompatibilityError, SecurityError
from gemcore.core.models import Specification
from gemcore.core.protocols import InstalledIndex
from gemcore.core.version import Requirement, Version
from gemcore.services.install.models import SecurityPolicy

logger = logging.getLogger(__name__)


class DependencyGate:
    """版本与依赖兼容性检查"""

    def __init__(self, index: InstalledIndex) -> None:
        self.index = index

    def check(
        self,
        spec: Specification,
        runtime_version: str,
        tool_version: str,
        *,
        ignore_dependencies: bool = False,
    ) -> None:
        """按顺序检查，第一个不满足的条件抛 IncompatibilityError"""
        rrv = spec.required_runtime_version
        if rrv is not None and not _satisfied(rrv, runtime_version):
            raise IncompatibilityError(
                f"{spec.name} 需要运行时版本 {rrv} (当前: {runtime_version or '未知'})"
            )

        rtv = spec.required_tool_version
        if rtv is not None and not _satisfied(rtv, tool_version):
            raise IncompatibilityError(
                f"{spec.name} 需要 gemcore 版本 {rtv} (当前: {tool_version or '未知'})"
            )

        if ignore_dependencies:
            logger.info("忽略依赖检查: %s", spec.full_name)
            return

        for dep in spec.dependencies:
            self.ensure_dependency(spec, dep.name, dep.requirement)
        logger.info("依赖检查通过: %s (%d 个依赖)", spec.full_name, len(spec.dependencies))

    def ensure_dependency(
        self, spec: Specification, name: str, requirement: Requirement,
    ) -> None:
        if self.index.satisfies(name, requirement) > 0:
            return
        raise IncompatibilityError(f"{spec.name} 依赖 {name} {requirement}，但未安装")


def _satisfied(requirement: Requirement, version: str) -> bool:
    if not Version.correct(version):
        return False
    return requirement.satisfied_by(Version(version))


def check_security(
    spec_name: str, policy: SecurityPolicy | None, *, force: bool = False,
) -> None:
    """应用签名策略

    force 会丢弃策略，除非策略要求 only_signed。
    """
    if policy is None:
        return
    if force and not policy.only_signed:
        logger.info("force 安装，忽略签名策略: %s", spec_name)
        return
    if policy.verdict is False:
        raise SecurityError(f"{spec_name} 签名校验失败")
    if policy.only_signed and policy.verdict is not True:
        raise SecurityError(f"{spec_name} 未签名，当前策略只接受已签名的包")

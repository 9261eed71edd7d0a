"""安装流水线各阶段

- models.py: 安装选项、签名策略
- gate.py: 版本/依赖闸门
- extractor.py: 安全解压
- stubs.py: 可执行入口生成
"""

from gemcore.services.install.extractor import extract_files
from gemcore.services.install.gate import DependencyGate, check_security
from gemcore.services.install.models import InstallOptions, SecurityPolicy
from gemcore.services.install.stubs import StubGenerator

__all__ = [
    "DependencyGate",
    "InstallOptions",
    "SecurityPolicy",
    "StubGenerator",
    "check_security",
    "extract_files",
]

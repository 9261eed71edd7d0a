"""统一异常体系

所有安装相关异常继承 GemCoreError，调用方可按类型区分失败原因。
CLI 层据此输出友好提示并以非零码退出。
"""

from __future__ import annotations


class GemCoreError(Exception):
    """安装核心基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(GemCoreError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class FormatError(GemCoreError):
    """包归档无法解析（tar/gzip 损坏、缺少成员、元数据非法）"""

    code = "FORMAT_ERROR"


class InstallError(GemCoreError):
    """安装失败"""

    code = "INSTALL_ERROR"


class IncompatibilityError(InstallError):
    """运行时/工具版本不满足，或依赖未安装"""

    code = "INCOMPATIBLE"


class SecurityError(InstallError):
    """签名校验未通过，或策略要求签名但包未签名"""

    code = "SECURITY_ERROR"


class FilePermissionError(InstallError):
    """安装根目录或 bin 目录不可写"""

    code = "PERMISSION_DENIED"

    def __init__(self, path: str) -> None:
        super().__init__(f"没有写入权限: {path}")
        self.path = path


class PathTraversalError(InstallError):
    """归档条目试图写到目标目录之外"""

    code = "PATH_TRAVERSAL"

    def __init__(self, entry_path: str, destination: str) -> None:
        super().__init__(
            f"拒绝安装文件 {entry_path!r}: 超出目标目录 {destination!r}"
        )
        self.entry_path = entry_path
        self.destination = destination


class ExtensionBuildError(InstallError):
    """原生扩展构建失败，已安装文件保留供排查"""

    code = "EXTENSION_BUILD_ERROR"

    def __init__(
        self, message: str, *, output: str = "", log_path: str = "",
        install_dir: str = "",
    ) -> None:
        super().__init__(message)
        self.output = output
        self.log_path = log_path
        self.install_dir = install_dir


class BuildError(GemCoreError):
    """单个构建器执行失败，携带已采集的输出"""

    code = "BUILD_ERROR"

    def __init__(self, message: str, output: list[str] | None = None) -> None:
        super().__init__(message)
        self.output = output or []

"""安装选项数据模型"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SecurityPolicy:
    """签名策略（校验细节由外部完成，这里只消费结论）

    only_signed: 只接受已签名的包，force 也无法绕过
    verdict:     外部校验结论，True 通过 / False 失败 / None 未签名
    """

    only_signed: bool = False
    verdict: bool | None = None


@dataclass
class InstallOptions:
    """单次安装的选项（由 CLI 层或嵌入调用方提供）"""

    force: bool = False
    install_dir: str = ""          # 为空时使用 Config.install_dir
    ignore_dependencies: bool = False
    security_policy: SecurityPolicy | None = None
    wrappers: bool = True
    env_shebang: bool = False
    bin_dir: str = ""              # 为空时使用 Config.bin_dir 或 <install_dir>/bin
    build_args: list[str] = field(default_factory=list)
    runtime_version: str = ""      # 覆盖探测到的运行时版本
    tool_version: str = ""         # 覆盖 gemcore 自身版本

"""gemcore - 软件包安装核心"""

__version__ = "0.9.4"

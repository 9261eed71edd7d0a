"""用户交互实现"""

from __future__ import annotations

import click


class ConsoleUI:
    """终端输出：信息到 stdout，警告到 stderr"""

    def say(self, message: str) -> None:
        click.echo(message)

    def alert_warning(self, message: str) -> None:
        click.secho(f"警告: {message}", fg="yellow", err=True)


class RecordingUI:
    """内存记录，供嵌入调用方或测试读取输出"""

    def __init__(self) -> None:
        self.messages: list[str] = []
        self.warnings: list[str] = []

    def say(self, message: str) -> None:
        self.messages.append(message)

    def alert_warning(self, message: str) -> None:
        self.warnings.append(message)

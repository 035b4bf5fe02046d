"""
prompts
-------

interactive 모드에서 운영자에게 값을 묻는 얇은 래퍼.
테스트에서는 같은 인터페이스의 가짜 객체로 교체한다.
"""

from __future__ import annotations

import click


class Prompter:
    def ask(self, message: str, default: str = "") -> str:
        value = click.prompt(
            message,
            default=default,
            show_default=bool(default),
            type=str,
        )
        return (value or "").strip()

    def confirm(self, message: str, default: bool = False) -> bool:
        return click.confirm(message, default=default)

    def show(self, text: str) -> None:
        if text:
            click.echo(text.rstrip())

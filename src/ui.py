from __future__ import annotations

import json
from typing import Any, Callable, Optional, Union

from rich import box
from rich.console import Console, RenderableType
from rich.rule import Rule
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text


console = Console()
_output_sink: Optional[Callable[[RenderableType], None]] = None


def set_output_sink(sink: Optional[Callable[[RenderableType], None]]) -> None:
    """Route UI renderables to an alternate sink (e.g., a test collector)."""
    global _output_sink
    _output_sink = sink


def _emit(renderable: Union[RenderableType, str]) -> None:
    if isinstance(renderable, str):
        renderable = Text(renderable)
    if _output_sink:
        _output_sink(renderable)
    else:
        console.print(renderable)


def section(title: str, subtitle: Optional[str] = None) -> None:
    header = Text(title, style="bold")
    if subtitle:
        header.append(f" • {subtitle}", style="dim")
    _emit(Rule(header))


def table(headers: list[Any], rows: list[list[Any]]) -> None:
    t = Table(show_header=True, header_style="bold magenta", box=box.SIMPLE, expand=True)
    for header in headers:
        t.add_column(str(header), overflow="fold", no_wrap=False)
    for row in rows:
        t.add_row(*[str(cell) for cell in row])
    _emit(t)


def key_value_table(rows: list[list[Any]]) -> None:
    t = Table(show_header=False, box=box.SIMPLE, expand=True)
    t.add_column("Key", style="bold", overflow="fold", no_wrap=False)
    t.add_column("Value", overflow="fold", no_wrap=False)
    for key, value in rows:
        t.add_row(str(key), str(value))
    _emit(t)


def info(message: str) -> None:
    _emit(Text(message, style="green"))


def warning(message: str) -> None:
    _emit(Text(message, style="yellow"))


def json_output(payload: object) -> None:
    rendered = Syntax(json.dumps(payload, indent=2, ensure_ascii=False), "json", theme="ansi_dark", word_wrap=True)
    _emit(rendered)

"""PDF 用 HTML テンプレートの差し込みエンジン。

Mustache の小さなサブセットを扱う。

- ``{{key}}``: 値の差し込み（HTML エスケープ済み）
- ``{{#if key}}...{{/if}}``: 値が真のときだけ本文を残す
- ``{{#each key}}...{{/each}}``: 配列の要素ごとに本文を繰り返す（要素は ``{{this}}``）

テンプレートは一度構文木へ分解してから評価する。差し込んだ値の中に
``{{...}}`` が含まれていても再解釈されることはない。
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence, Union
from xml.sax.saxutils import escape

EMPTY_VALUE_HTML = '<span class="empty-value">（未記入）</span>'
DEFAULT_YES = "はい"
DEFAULT_NO = "いいえ"
THIS_KEY = "this"

_HTML_ENTITIES = {'"': "&quot;", "'": "&#039;"}

_MARKER_RE = re.compile(
    r"\{\{(?:#(?P<open>if|each)\s+(?P<block_key>\w+)|/(?P<close>if|each)|(?P<key>\w+))\}\}",
    re.ASCII,
)


class BlockKind(str, Enum):
    """テンプレート内のマーカー種別。"""

    SCALAR = "scalar"
    IF = "if"
    EACH = "each"


@dataclass
class TextNode:
    text: str


@dataclass
class ScalarNode:
    key: str
    kind: BlockKind = BlockKind.SCALAR


@dataclass
class BlockNode:
    kind: BlockKind
    key: str
    opener: str
    children: list["Node"] = field(default_factory=list)


Node = Union[TextNode, ScalarNode, BlockNode]


def escape_html(text: str) -> str:
    """``& < > " '`` を実体参照へ置き換える。"""

    return escape(text, _HTML_ENTITIES)


def parse_template(template: str) -> list[Node]:
    """テンプレート文字列を構文木に分解する。

    対応の取れない開始・終了マーカーはそのまま文字列として残す。
    """

    root: list[Node] = []
    stack: list[BlockNode] = []

    def _current() -> list[Node]:
        return stack[-1].children if stack else root

    pos = 0
    for match in _MARKER_RE.finditer(template):
        if match.start() > pos:
            _current().append(TextNode(template[pos : match.start()]))
        pos = match.end()
        raw = match.group(0)
        if match.group("open"):
            block = BlockNode(
                kind=BlockKind(match.group("open")),
                key=match.group("block_key"),
                opener=raw,
            )
            _current().append(block)
            stack.append(block)
        elif match.group("close"):
            kind = BlockKind(match.group("close"))
            if stack and stack[-1].kind == kind:
                stack.pop()
            else:
                _current().append(TextNode(raw))
        else:
            _current().append(ScalarNode(match.group("key")))
    if pos < len(template):
        _current().append(TextNode(template[pos:]))

    # 閉じられていないブロックは開始マーカーを文字列に戻して展開する
    while stack:
        block = stack.pop()
        parent = stack[-1].children if stack else root
        index = next(i for i, node in enumerate(parent) if node is block)
        parent[index : index + 1] = [TextNode(block.opener), *block.children]
    return root


def is_truthy(value: Any) -> bool:
    """``{{#if}}`` の判定規則。"""

    if value is None or value is False or value == "":
        return False
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return True


def format_scalar(value: Any, yes: str = DEFAULT_YES, no: str = DEFAULT_NO) -> str:
    """``{{key}}`` に差し込む HTML 断片を返す。"""

    if value is None or value == "":
        return EMPTY_VALUE_HTML
    if isinstance(value, bool):
        return yes if value else no
    if isinstance(value, (list, tuple)):
        return escape_html(",".join(_to_text(v) for v in value))
    return escape_html(_to_text(value))


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class _Renderer:
    def __init__(self, data: Mapping[str, Any], yes: str, no: str) -> None:
        self.data = data
        self.yes = yes
        self.no = no

    def render(self, nodes: Sequence[Node], item: Any = None, in_each: bool = False) -> str:
        parts: list[str] = []
        for node in nodes:
            if isinstance(node, TextNode):
                parts.append(node.text)
            elif isinstance(node, ScalarNode):
                if in_each and node.key == THIS_KEY:
                    # 配列要素は文字列化してエスケープするだけ（空値マーカーや はい/いいえ は使わない）
                    parts.append(escape_html(_to_text(item)))
                else:
                    parts.append(format_scalar(self.data.get(node.key), self.yes, self.no))
            elif node.kind == BlockKind.EACH:
                values = self.data.get(node.key)
                if isinstance(values, (list, tuple)):
                    for element in values:
                        parts.append(self.render(node.children, element, True))
            elif node.kind == BlockKind.IF:
                if is_truthy(self.data.get(node.key)):
                    parts.append(self.render(node.children, item, in_each))
        return "".join(parts)


def render_template(
    template: str,
    data: Mapping[str, Any],
    *,
    yes: str = DEFAULT_YES,
    no: str = DEFAULT_NO,
) -> str:
    """テンプレートにデータを差し込み、最終的な HTML を返す。"""

    nodes = parse_template(template)
    return _Renderer(data or {}, yes, no).render(nodes)


__all__ = [
    "BlockKind",
    "BlockNode",
    "DEFAULT_NO",
    "DEFAULT_YES",
    "EMPTY_VALUE_HTML",
    "ScalarNode",
    "TextNode",
    "escape_html",
    "format_scalar",
    "is_truthy",
    "parse_template",
    "render_template",
]

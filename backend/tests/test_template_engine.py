"""差し込みエンジンのテスト。"""
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from intake.template_engine import (  # type: ignore[import]
    EMPTY_VALUE_HTML,
    BlockKind,
    BlockNode,
    escape_html,
    format_scalar,
    is_truthy,
    parse_template,
    render_template,
)


def test_scalar_substitution() -> None:
    assert render_template("Hello {{name}}", {"name": "田中"}) == "Hello 田中"


def test_if_block_removed_for_false() -> None:
    assert render_template("{{#if has_allergy}}Allergic{{/if}}", {"has_allergy": False}) == ""


def test_if_block_kept_for_truthy_values() -> None:
    tpl = "{{#if v}}yes{{/if}}"
    assert render_template(tpl, {"v": "x"}) == "yes"
    assert render_template(tpl, {"v": ["a"]}) == "yes"
    assert render_template(tpl, {"v": 0}) == "yes"
    for falsy in (None, "", False, []):
        assert render_template(tpl, {"v": falsy}) == ""
    assert render_template(tpl, {}) == ""


def test_each_block_repeats_body() -> None:
    tpl = "{{#each symptoms}}<li>{{this}}</li>{{/each}}"
    out = render_template(tpl, {"symptoms": ["toothache", "bleeding"]})
    assert out == "<li>toothache</li><li>bleeding</li>"


def test_each_block_disappears_for_empty_or_non_list() -> None:
    tpl = "a{{#each xs}}<li>{{this}}</li>{{/each}}b"
    assert render_template(tpl, {"xs": []}) == "ab"
    assert render_template(tpl, {"xs": "toothache"}) == "ab"
    assert render_template(tpl, {}) == "ab"


def test_each_inside_if() -> None:
    tpl = "{{#if xs}}<ul>{{#each xs}}<li>{{this}}</li>{{/each}}</ul>{{/if}}"
    assert render_template(tpl, {"xs": ["歯痛", "出血"]}) == "<ul><li>歯痛</li><li>出血</li></ul>"
    assert render_template(tpl, {"xs": []}) == ""


def test_if_inside_each_sees_outer_data() -> None:
    tpl = "{{#each xs}}[{{this}}{{#if flag}}!{{/if}}]{{/each}}"
    assert render_template(tpl, {"xs": ["a", "b"], "flag": True}) == "[a!][b!]"
    assert render_template(tpl, {"xs": ["a"], "flag": False}) == "[a]"


def test_missing_and_blank_values_render_placeholder() -> None:
    assert render_template("{{name}}", {}) == EMPTY_VALUE_HTML
    assert render_template("{{name}}", {"name": None}) == EMPTY_VALUE_HTML
    assert render_template("{{name}}", {"name": ""}) == EMPTY_VALUE_HTML
    assert "{{" not in render_template("{{unknown}}", {})


def test_boolean_blank_and_false_are_distinguishable() -> None:
    assert render_template("{{v}}", {"v": False}) == "いいえ"
    assert render_template("{{v}}", {"v": True}) == "はい"
    assert render_template("{{v}}", {"v": None}) == EMPTY_VALUE_HTML
    assert render_template("{{v}}", {"v": False}, yes="Yes", no="No") == "No"


def test_free_text_is_escaped() -> None:
    out = render_template("<td>{{address}}</td>", {"address": "<script>alert('x') & \"y\"</script>"})
    assert out == "<td>&lt;script&gt;alert(&#039;x&#039;) &amp; &quot;y&quot;&lt;/script&gt;</td>"
    assert escape_html("<>&\"'") == "&lt;&gt;&amp;&quot;&#039;"


def test_each_item_is_escaped() -> None:
    out = render_template("{{#each xs}}{{this}}{{/each}}", {"xs": ["<b>"]})
    assert out == "&lt;b&gt;"


def test_markers_inside_values_are_not_reinterpreted() -> None:
    data = {"name": "{{secret}}", "secret": "leak", "xs": ["{{#if secret}}x{{/if}}"]}
    assert render_template("{{name}}", data) == "{{secret}}"
    assert render_template("{{#each xs}}{{this}}{{/each}}", data) == "{{#if secret}}x{{/if}}"


def test_numbers_and_lists_as_scalars() -> None:
    assert format_scalar(3) == "3"
    assert format_scalar(3.0) == "3"
    assert format_scalar(0) == "0"
    assert format_scalar(["a", "b"]) == "a,b"
    assert format_scalar([]) == ""


def test_each_item_uses_plain_string_form() -> None:
    out = render_template("{{#each xs}}[{{this}}]{{/each}}", {"xs": ["", None, True, 0, "<b>"]})
    assert out == "[][][True][0][&lt;b&gt;]"


def test_non_ascii_marker_names_are_plain_text() -> None:
    assert render_template("{{名前}}", {"名前": "田中"}) == "{{名前}}"
    assert render_template("{{#if 有無}}x{{/if}}", {"有無": True}) == "{{#if 有無}}x{{/if}}"


def test_unbalanced_markers_are_left_as_text() -> None:
    assert render_template("{{#if a}}open", {"a": True}) == "{{#if a}}open"
    assert render_template("close{{/each}}", {}) == "close{{/each}}"
    assert render_template("{{#each xs}}x{{/if}}", {"xs": ["1"]}) == "{{#each xs}}x{{/if}}"


def test_parse_template_builds_block_tree() -> None:
    nodes = parse_template("a{{#if x}}{{#each ys}}{{this}}{{/each}}{{/if}}")
    assert len(nodes) == 2
    block = nodes[1]
    assert isinstance(block, BlockNode)
    assert block.kind is BlockKind.IF
    inner = block.children[0]
    assert isinstance(inner, BlockNode)
    assert inner.kind is BlockKind.EACH
    assert inner.key == "ys"


def test_is_truthy_rules() -> None:
    assert is_truthy("a")
    assert is_truthy(0)
    assert not is_truthy(None)
    assert not is_truthy(())

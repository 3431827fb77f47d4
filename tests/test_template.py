"""消息模板测试: 位置填充的兜底格式化 + 按名字渲染."""

import threading

from vocalog.template import (
    bind_positional,
    format_message_template,
    placeholder_names,
    render_message,
)


class TestFormatMessageTemplate:
    def test_values_fill_in_order(self):
        assert format_message_template("{a} and {b}", ["x", "y"]) == "x and y"

    def test_exhausted_values_leave_placeholder_literal(self):
        assert format_message_template("{a} and {b}", ["x"]) == "x and {b}"

    def test_no_placeholders_returned_verbatim(self):
        assert format_message_template("no placeholders", []) == "no placeholders"
        assert format_message_template("no placeholders", [1, 2]) == "no placeholders"

    def test_none_values_returns_template(self):
        assert format_message_template("{a}", None) == "{a}"

    def test_empty_template(self):
        assert format_message_template("", ["x"]) == ""

    def test_extra_values_ignored(self):
        assert format_message_template("{only}", [1, 2, 3]) == "1"

    def test_names_are_ignored(self):
        """同名占位符也按位置各取一个值."""
        assert format_message_template("{x}-{x}", ["a", "b"]) == "a-b"

    def test_values_rendered_with_str(self):
        assert format_message_template("{n} songs, ok={ok}", [3, True]) == "3 songs, ok=True"

    def test_empty_braces_are_not_placeholders(self):
        assert format_message_template("{} {a}", ["x"]) == "{} x"

    def test_thread_safe(self):
        results = []

        def worker(i):
            results.append(format_message_template("{a}/{b}", [i, i + 1]) == f"{i}/{i + 1}")

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert all(results) and len(results) == 20


class TestNamedRendering:
    def test_placeholder_names_strip_hints_and_formats(self):
        assert placeholder_names("{@Song} at {Pos:000} {$Raw,10}") == ["Song", "Pos", "Raw"]

    def test_bind_positional(self):
        assert bind_positional("{File}: {Reason}", ["a.txt", "missing"]) == {
            "File": "a.txt",
            "Reason": "missing",
        }

    def test_bind_positional_repeated_name_binds_once(self):
        assert bind_positional("{A} {A} {B}", [1, 2]) == {"A": 1, "B": 2}

    def test_bind_positional_shortfall(self):
        assert bind_positional("{A} {B}", [1]) == {"A": 1}

    def test_render_message_unknown_names_kept(self):
        assert render_message("{Song} by {Artist}", {"Song": "Yesterday"}) == "Yesterday by {Artist}"

    def test_render_message_without_properties(self):
        assert render_message("{Song}", None) == "{Song}"

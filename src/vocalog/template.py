"""
消息模板

- format_message_template: 按位置把值填入 {...} 占位符（兜底渲染，供报告对话框使用）
- placeholder_names / bind_positional / render_message: 通道写日志时按名字渲染
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any

# 非嵌套、最短匹配的占位符；{} 本身不算占位符
_PLACEHOLDER = re.compile(r"{[^}]+}")


def format_message_template(template: str, values: Sequence[Any] | None = None) -> str:
    """
    按位置把 values 填入模板中的占位符

    这是结构化消息模板的简化近似，结果与真正的模板引擎并不相同:
    占位符的名字被忽略，只按出现顺序依次取值；值用完以后，剩下的占位符
    原样保留（不报错，也不替换成别的标记）。多余的值直接丢弃。

    Args:
        template: 消息模板，例如 "Can't load {File}: {Reason}"
        values: 按顺序填入的值，None 或空序列时原样返回模板

    Returns:
        填充后的字符串
    """
    if not values:
        return template

    remaining = iter(values)

    def _substitute(match: re.Match) -> str:
        try:
            return str(next(remaining))
        except StopIteration:
            return match.group(0)

    return _PLACEHOLDER.sub(_substitute, template)


def _property_name(span: str) -> str:
    """从 "{@Name,10:000}" 这样的占位符中取出名字 "Name" """
    name = span[1:-1].strip()
    if name[:1] in ("@", "$"):
        name = name[1:]
    return re.split(r"[,:]", name, maxsplit=1)[0].strip()


def placeholder_names(template: str) -> list[str]:
    """按出现顺序列出模板中的占位符名字（可能重复）"""
    return [_property_name(m.group(0)) for m in _PLACEHOLDER.finditer(template)]


def bind_positional(template: str, values: Sequence[Any]) -> dict[str, Any]:
    """
    把位置参数按顺序绑定到占位符名字上

    同名占位符只绑定一次；多余的值被丢弃。
    """
    bound: dict[str, Any] = {}
    remaining = iter(values)
    for name in placeholder_names(template):
        if name in bound:
            continue
        try:
            bound[name] = next(remaining)
        except StopIteration:
            break
    return bound


def render_message(template: str, properties: Mapping[str, Any] | None) -> str:
    """用属性字典按名字渲染模板，未知名字的占位符原样保留"""
    if not properties:
        return template

    def _substitute(match: re.Match) -> str:
        name = _property_name(match.group(0))
        if name in properties:
            return str(properties[name])
        return match.group(0)

    return _PLACEHOLDER.sub(_substitute, template)

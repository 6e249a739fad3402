# Expanding rendered post trees to HTML or plain text
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import html
from typing import Callable, Optional, Union

from .parser import NodeKind, PostNode, PostNodeChildrenList

GeneralNode = Union[str, PostNode, PostNodeChildrenList]

NodeHandlerFnCallable = Callable[[PostNode], Optional[GeneralNode]]

# Tags that have no end tag
VOID_TAGS: set[str] = {"br", "hr", "img", "wbr"}


def to_attrs(node: PostNode) -> str:
    parts: list[str] = []
    for k, v in node.attrs.items():
        if not v:
            parts.append(k)
            continue
        parts.append('{}="{}"'.format(k, html.escape(v, quote=True)))
    return " ".join(parts)


def to_html(
    node: GeneralNode,
    node_handler_fn: Optional[NodeHandlerFnCallable] = None,
) -> str:
    """Converts a post tree (or subtree) to HTML.  Text is escaped.
    If ``node_handler_fn`` is supplied, it will be called for each PostNode
    being rendered, and if it returns non-None, the returned value will be
    rendered instead of the node.  The returned value may be a list,
    string, or a PostNode."""
    assert node_handler_fn is None or callable(node_handler_fn)

    def recurse(node: GeneralNode) -> str:
        if isinstance(node, str):
            return html.escape(node, quote=False)
        if isinstance(node, (list, tuple)):
            return "".join(map(recurse, node))
        if not isinstance(node, PostNode):
            raise RuntimeError("invalid PostNode: {}".format(node))

        if node_handler_fn is not None:
            ret = node_handler_fn(node)
            if ret is not None and ret is not node:
                return recurse(ret)

        parts = ["<", node.tag]
        if node.attrs:
            parts.append(" ")
            parts.append(to_attrs(node))
        parts.append(">")
        if node.tag in VOID_TAGS:
            assert not node.children
            return "".join(parts)
        parts.append(recurse(node.children))
        parts.append("</{}>".format(node.tag))
        return "".join(parts)

    return recurse(node)


def to_text(
    node: GeneralNode,
    node_handler_fn: Optional[NodeHandlerFnCallable] = None,
) -> str:
    """Converts a post tree (or subtree) to plain text.  Line breaks become
    newlines and the post chrome (header, backlinks) is dropped."""
    assert node_handler_fn is None or callable(node_handler_fn)

    def recurse(node: GeneralNode) -> str:
        if isinstance(node, str):
            return node
        if isinstance(node, (list, tuple)):
            return "".join(map(recurse, node))
        if not isinstance(node, PostNode):
            raise RuntimeError("invalid PostNode: {}".format(node))

        if node_handler_fn is not None:
            ret = node_handler_fn(node)
            if ret is not None and ret is not node:
                return recurse(ret)

        kind = node.kind
        if kind == NodeKind.LINE_BREAK:
            return "\n"
        if kind in (NodeKind.HTML, NodeKind.BACKLINKS):
            return ""
        if kind == NodeKind.INLINED_POST:
            return "\n" + recurse(node.children) + "\n"
        return recurse(node.children)

    return recurse(node)

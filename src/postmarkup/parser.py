# Parser for the text body of imageboard posts
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org
import enum
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Literal,
    Optional,
    Union,
    overload,
)

from .common import MARKER_RE, QUOTE_CHAR

if TYPE_CHECKING:
    from .core import PostRenderer


@enum.unique
class NodeKind(enum.Flag):
    """Node types in the rendered post tree."""

    # Root node of a post body.  Children are the rendered lines, separated
    # by LINE_BREAK nodes.
    ROOT = enum.auto()

    # A quoted line, i.e., one starting with ">".  The ">" characters are
    # kept as text.  Content is in children.
    QUOTE = enum.auto()

    # Inline code.  Children are plain strings and SYNTAX nodes produced by
    # the highlighter.
    CODE = enum.auto()

    # Spoilered text.  Content is in children.
    SPOILER = enum.auto()

    # Content to be rendered in bold.  Content is in children.
    BOLD = enum.auto()

    # Content to be rendered in italic.  Content is in children.
    ITALIC = enum.auto()

    # Line break.  No children.
    LINE_BREAK = enum.auto()

    # ">" characters found at the start of text inside a code span.  They
    # are kept out of the highlighter and rendered literally.
    QUOTE_MARK = enum.auto()

    # Highlighted token inside code.  The class attribute names the token
    # category.
    SYNTAX = enum.auto()

    # Link to another post.  Attrs carry data-id, data-op and href.
    POST_LINK = enum.auto()

    # Reference to a post that this post does not link to.  Children are
    # the original ">>id" text.
    DEAD_LINK = enum.auto()

    # Inlined copy of a linked post.  The only child is its ARTICLE.
    INLINED_POST = enum.auto()

    # Result of a hash command, e.g. "#flip (flip)".
    COMMAND = enum.auto()

    # Syncwatch command.  The timer parameters are in data-* attrs.
    SYNCWATCH = enum.auto()

    # A complete rendered post: header, body ROOT and BACKLINKS.
    ARTICLE = enum.auto()

    # Links to the posts that link to this post
    BACKLINKS = enum.auto()

    # Any other element used by the post chrome.  The tag must be given
    # explicitly.
    HTML = enum.auto()


# Maps node kind to the tag name it is rendered as
KIND_TO_TAG: dict[NodeKind, str] = {
    NodeKind.ROOT: "blockquote",
    NodeKind.QUOTE: "em",
    NodeKind.CODE: "code",
    NodeKind.SPOILER: "del",
    NodeKind.BOLD: "b",
    NodeKind.ITALIC: "i",
    NodeKind.LINE_BREAK: "br",
    NodeKind.QUOTE_MARK: "span",
    NodeKind.SYNTAX: "span",
    NodeKind.POST_LINK: "a",
    NodeKind.DEAD_LINK: "span",
    NodeKind.INLINED_POST: "div",
    NodeKind.COMMAND: "strong",
    NodeKind.SYNCWATCH: "strong",
    NodeKind.ARTICLE: "article",
    NodeKind.BACKLINKS: "span",
}

# Node kinds produced by the formatting delimiters
SPAN_KIND_FLAGS = (
    NodeKind.CODE | NodeKind.SPOILER | NodeKind.BOLD | NodeKind.ITALIC
)


PostNodeChildrenList = list[Union[str, "PostNode"]]
PostNodeAttrsDict = dict[str, str]


class PostNode:
    """Node in the rendered tree of a post."""

    __slots__ = (
        "kind",
        "tag",
        "attrs",
        "children",
    )

    def __init__(
        self,
        kind: NodeKind,
        tag: Optional[str] = None,
        attrs: Optional[PostNodeAttrsDict] = None,
        children: Optional[PostNodeChildrenList] = None,
    ) -> None:
        assert isinstance(kind, NodeKind)
        if tag is None:
            assert kind in KIND_TO_TAG, "HTML nodes need an explicit tag"
            tag = KIND_TO_TAG[kind]
        self.kind = kind
        self.tag: str = tag
        self.attrs: PostNodeAttrsDict = dict(attrs) if attrs else {}
        self.children: PostNodeChildrenList = (
            list(children) if children else []
        )

    def __str__(self) -> str:
        return "<{}({}){} {}>".format(
            self.kind.name,
            self.tag,
            self.attrs,
            ", ".join(map(repr, self.children)),
        )

    def __repr__(self) -> str:
        return self.__str__()

    @overload
    def find_child(
        self, target_kinds: NodeKind, with_index: Literal[True]
    ) -> Iterator[tuple[int, "PostNode"]]: ...

    @overload
    def find_child(
        self, target_kinds: NodeKind, with_index: Literal[False] = ...
    ) -> Iterator["PostNode"]: ...

    def find_child(
        self,
        target_kinds: NodeKind,
        with_index: bool = False,
    ) -> Iterator[Union["PostNode", tuple[int, "PostNode"]]]:
        """Find direct child nodes that match the target node kinds."""
        for index, child in enumerate(self.children):
            if isinstance(child, PostNode) and child.kind in target_kinds:
                if with_index:
                    yield index, child
                else:
                    yield child

    def find_child_recursively(
        self, target_kinds: NodeKind
    ) -> Iterator["PostNode"]:
        """Find all descendant nodes that match the target node kinds,
        depth first."""
        for child in self.children:
            if isinstance(child, PostNode):
                if child.kind in target_kinds:
                    yield child
                yield from child.find_child_recursively(target_kinds)

    def contain_node(self, target_kinds: NodeKind) -> bool:
        for _ in self.find_child_recursively(target_kinds):
            return True
        return False


class ParserStackError(RuntimeError):
    """The insertion point stack was popped past its root.  This means span
    toggling and the tree went out of sync; it is never caused by the
    text being parsed."""


def _merge_str_children(node: PostNode) -> None:
    """Merges consecutive str children into one and drops empty ones.
    Doing this once when a node is closed keeps appending text linear."""
    new_children: PostNodeChildrenList = []
    strings: list[str] = []
    for x in node.children:
        if isinstance(x, str):
            strings.append(x)
        else:
            if strings:
                s = "".join(strings)
                if s:
                    new_children.append(s)
                strings = []
            new_children.append(x)
    if strings:
        s = "".join(strings)
        if s:
            new_children.append(s)
    node.children = new_children


class TextState:
    """State of a post's text while it is being parsed.  The span flags
    and counters outlive a single pass: a span left open at the end of the
    text stays open for the next pass that starts from this state."""

    __slots__ = (
        "code",
        "spoiler",
        "bold",
        "italic",
        "quote",
        "have_syncwatch",
        "successive_newlines",
        "dice_index",
        "command_index",
        "parents",
    )

    def __init__(self) -> None:
        self.code = False  # Text is inside a code span
        self.spoiler = False  # Current text is spoilered
        self.bold = False  # Text inside bold tag
        self.italic = False  # Text inside italic tag
        self.quote = False  # Current line is quoted
        self.have_syncwatch = False  # Text contains #syncwatch command(s)
        self.successive_newlines = 0  # Number of successive empty lines
        # Number of dice faces rendered so far.  Results come with each
        # command; this is a running count for consumers of the state.
        self.dice_index = 0
        self.command_index = 0  # Index of the next hash command to use
        # Current insertion point at each nesting depth.  The tree owns the
        # nodes; this only remembers where to append next.
        self.parents: list[PostNode] = []

    def __repr__(self) -> str:
        flags = [
            name
            for name in ("code", "spoiler", "bold", "italic", "quote")
            if getattr(self, name)
        ]
        return "<TextState {} newlines={} commands={} dice={} depth={}>".format(
            "|".join(flags) or "-",
            self.successive_newlines,
            self.command_index,
            self.dice_index,
            len(self.parents),
        )

    def reset(self, root: PostNode) -> None:
        """Resets to initial values and sets ``root`` as the new root
        parent."""
        assert isinstance(root, PostNode)
        self.code = False
        self.spoiler = False
        self.bold = False
        self.italic = False
        self.quote = False
        self.have_syncwatch = False
        self.successive_newlines = 0
        self.dice_index = 0
        self.command_index = 0
        self.parents = [root]

    def rebase(self, root: PostNode) -> None:
        """Continues from the current flags and counters, appending to
        ``root`` from now on."""
        assert isinstance(root, PostNode)
        self.parents = [root]

    def copy(self) -> "TextState":
        """Returns a snapshot of the flags and counters.  The insertion
        point stack is not copied; call rebase() on the copy."""
        state = TextState()
        for name in TextState.__slots__:
            if name != "parents":
                setattr(state, name, getattr(self, name))
        return state

    @property
    def top(self) -> PostNode:
        return self.parents[-1]

    def append(self, node: Union[str, PostNode], descend: bool = False) -> None:
        """Appends ``node`` to the current lowermost parent.  If
        ``descend`` is True, it becomes the parent to append to next."""
        assert isinstance(node, (str, PostNode))
        self.parents[-1].children.append(node)
        if descend:
            assert isinstance(node, PostNode)
            self.parents.append(node)

    def ascend(self) -> None:
        """Ascends one level up the parent stack."""
        if len(self.parents) <= 1:
            raise ParserStackError(
                "cannot ascend above the root node ({!r})".format(self)
            )
        _merge_str_children(self.parents.pop())


@dataclass(frozen=True)
class SpanLevel:
    """A formatting span toggled by a two-character delimiter.  ``flag``
    names the TextState attribute tracking whether it is open.  Text
    inside a ``literal`` span is not scanned for further markup."""

    delimiter: str
    kind: NodeKind
    flag: str
    literal: bool = False


# Formatting spans in canonical nesting order, outermost first.  Each level
# only scans text that is outside the spans before it, which is what fixes
# the nesting regardless of the order delimiters appear in.
SPAN_LEVELS: tuple[SpanLevel, ...] = (
    SpanLevel("``", NodeKind.CODE, "code", literal=True),
    SpanLevel("**", NodeKind.SPOILER, "spoiler"),
    SpanLevel("__", NodeKind.BOLD, "bold"),
    SpanLevel("~~", NodeKind.ITALIC, "italic"),
)


def parse_string(
    frag: str,
    sep: str,
    filler: Callable[[str], None],
    on_match: Callable[[], None],
) -> None:
    """Splits ``frag`` on ``sep``, calling ``filler`` on the text between
    separators and ``on_match`` for each separator found."""
    while True:
        i = frag.find(sep)
        if i < 0:
            filler(frag)
            return
        filler(frag[:i])
        frag = frag[i + len(sep) :]
        on_match()


def _pop_span(state: TextState) -> None:
    """Closes the span node at the top of the stack.  Span nodes left
    without content are removed; they come from re-opening spans around a
    toggle or a line boundary."""
    node = state.top
    state.ascend()
    if not node.children:
        parent = state.top
        assert parent.children[-1] is node
        parent.children.pop()


def reopen_spans(state: TextState) -> None:
    """Pushes a node for every open span, outermost first."""
    for span in SPAN_LEVELS:
        if getattr(state, span.flag):
            state.append(PostNode(span.kind), True)


def close_spans(state: TextState) -> None:
    """Pops the nodes of all open spans without changing their flags."""
    for span in reversed(SPAN_LEVELS):
        if getattr(state, span.flag):
            _pop_span(state)


def toggle_span(ctx: "PostRenderer", level: int) -> None:
    """Opens or closes the span at ``level``.  Spans nested inside it are
    closed first and re-opened afterwards, so only their position in the
    tree changes."""
    state = ctx.state
    assert state is not None
    span = SPAN_LEVELS[level]
    inner = [s for s in SPAN_LEVELS[level + 1 :] if getattr(state, s.flag)]
    for _ in inner:
        _pop_span(state)

    if getattr(state, span.flag):
        _pop_span(state)
    else:
        state.append(PostNode(span.kind), True)
    setattr(state, span.flag, not getattr(state, span.flag))

    for s in inner:
        state.append(PostNode(s.kind), True)


def scan_spans(ctx: "PostRenderer", frag: str, level: int = 0) -> None:
    """Runs ``frag`` through the span scanners starting at ``level``.
    Whatever is outside all spans ends up in fragment_fn()."""
    if level >= len(SPAN_LEVELS):
        fragment_fn(ctx, frag)
        return
    span = SPAN_LEVELS[level]

    def filler(text: str) -> None:
        if not text:
            return
        if span.literal and getattr(ctx.state, span.flag):
            code_text_fn(ctx, text)
        else:
            scan_spans(ctx, text, level + 1)

    parse_string(
        frag, span.delimiter, filler, lambda: toggle_span(ctx, level)
    )


def code_text_fn(ctx: "PostRenderer", text: str) -> None:
    """Inserts text from inside a code span.  Leading ">" characters are
    emitted literally and the rest is highlighted."""
    state = ctx.state
    assert state is not None
    stripped = text.lstrip(QUOTE_CHAR)
    num_quotes = len(text) - len(stripped)
    if num_quotes:
        state.append(
            PostNode(NodeKind.QUOTE_MARK, children=[QUOTE_CHAR * num_quotes])
        )
    if not stripped:
        return
    for cls, value in ctx.highlighter.tokens(stripped):
        if cls is None:
            state.append(value)
        else:
            state.append(
                PostNode(NodeKind.SYNTAX, attrs={"class": cls}, children=[value])
            )


def fragment_fn(ctx: "PostRenderer", frag: str) -> None:
    """Inserts a fragment of formatted text, dispatching post references
    and hash commands found in it."""
    state = ctx.state
    assert state is not None
    pos = 0
    for m in MARKER_RE.finditer(frag):
        if m.start() > pos:
            state.append(frag[pos : m.start()])
        if m.group("link"):
            ctx.resolve_link(int(m.group("link")), m.group(0))
        else:
            ctx.render_command(m)
        pos = m.end()
    if pos < len(frag):
        state.append(frag[pos:])


def process_line(ctx: "PostRenderer", line: str, last: bool) -> None:
    """Parses one line of the body.  Every line but the last is followed
    by a line break; runs of empty lines are collapsed."""
    state = ctx.state
    assert state is not None
    assert len(state.parents) == 1
    if not line:
        if last:
            return
        if state.successive_newlines < ctx.max_successive_newlines:
            state.append(PostNode(NodeKind.LINE_BREAK))
        state.successive_newlines += 1
        return
    state.successive_newlines = 0

    # A ">" inside an open code span is code, not a quote
    state.quote = not state.code and line.startswith(QUOTE_CHAR)
    if state.quote:
        state.append(PostNode(NodeKind.QUOTE), True)
    reopen_spans(state)
    scan_spans(ctx, line)
    close_spans(state)
    if state.quote:
        state.ascend()
    if not last:
        state.append(PostNode(NodeKind.LINE_BREAK))


def parse_body(
    ctx: "PostRenderer",
    text: str,
    state: Optional[TextState] = None,
    root: Optional[PostNode] = None,
    terminated: bool = False,
) -> PostNode:
    """Parses ``text`` into ``root`` (a new ROOT node by default) and
    returns the root.  Without ``state`` a fresh one is used.  A given
    ``state`` continues where its previous pass left off: spans it has
    open stay open.  If ``terminated`` is True, the last line is treated
    as followed by a newline."""
    assert isinstance(text, str)
    if root is None:
        root = PostNode(NodeKind.ROOT)
    if state is None:
        state = TextState()
        state.reset(root)
    else:
        state.rebase(root)

    prev_state = ctx.state
    ctx.state = state
    try:
        lines = text.split("\n")
        for i, line in enumerate(lines):
            process_line(ctx, line, i == len(lines) - 1 and not terminated)
        assert len(state.parents) == 1
        _merge_str_children(root)
    finally:
        state.parents = []
        ctx.state = prev_state
    return root


@overload
def print_tree(
    tree: Union[str, PostNode], indent: int, ret_value: Literal[True]
) -> str: ...


@overload
def print_tree(
    tree: Union[str, PostNode],
    indent: int = ...,
    ret_value: Literal[False] = ...,
) -> None: ...


def print_tree(
    tree: Union[str, PostNode], indent: int = 0, ret_value=False
) -> Optional[str]:
    """Prints the tree for debugging purposes."""
    assert isinstance(tree, (PostNode, str))
    assert isinstance(indent, int)
    parts = []
    if isinstance(tree, str):
        parts.append("{}{}".format(" " * indent, repr(tree)))
    else:
        parts.append("{}{} <{}>".format(" " * indent, tree.kind.name, tree.tag))
        for k, v in tree.attrs.items():
            parts.append("{}    {}={}".format(" " * indent, k, v))
        for child in tree.children:
            parts.append(print_tree(child, indent + 2, ret_value=True))

    if ret_value:
        return "\n".join(parts)
    print("\n".join(parts))
    return None

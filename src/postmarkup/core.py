# Definition of the processing context for rendering posts: configuration,
# collected diagnostics and the registry of known posts.
#
# Copyright (c) 2020-2022, 2024 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import logging
import re
from datetime import datetime, timezone
from typing import Optional, TypedDict

from .commands import command_fn
from .common import MAX_LENGTH_BODY, MAX_SUCCESSIVE_NEWLINES
from .highlight import SyntaxHighlighter
from .links import LinkData, link_fn, render_backlinks
from .logging_utils import logger
from .node_expand import NodeHandlerFnCallable, to_html, to_text
from .parser import NodeKind, PostNode, TextState, parse_body
from .post import Post


class ErrorMessageData(TypedDict):
    msg: str
    trace: str
    post: Optional[int]
    called_from: str
    path: tuple[int, ...]


class CollatedErrorReturnData(TypedDict):
    errors: list[ErrorMessageData]
    warnings: list[ErrorMessageData]
    debugs: list[ErrorMessageData]


class PostRenderer:
    """Context used for rendering posts.  Holds the configuration, the
    posts known to the renderer (for inlining and backlinks) and the
    diagnostics collected while rendering the current post."""

    __slots__ = (
        "errors",
        "warnings",
        "debugs",
        "post",
        "state",
        "posts",
        "inline_stack",
        "highlighter",
        "max_successive_newlines",
        "max_body_length",
    )

    def __init__(
        self,
        max_successive_newlines: int = MAX_SUCCESSIVE_NEWLINES,
        max_body_length: int = MAX_LENGTH_BODY,
        highlight_language: str = "c",
        highlight_cache_size: int = 1024,
        quiet: bool = False,
    ):
        assert max_successive_newlines >= 0
        assert max_body_length > 0
        self.errors: list[ErrorMessageData] = []
        self.warnings: list[ErrorMessageData] = []
        self.debugs: list[ErrorMessageData] = []
        self.post: Optional[Post] = None
        self.state: Optional[TextState] = None
        self.posts: dict[int, Post] = {}
        # IDs of the posts being rendered, outermost first.  Used to detect
        # posts that end up inlined inside themselves.
        self.inline_stack: list[int] = []
        self.highlighter = SyntaxHighlighter(
            highlight_language, highlight_cache_size
        )
        self.max_successive_newlines = max_successive_newlines
        self.max_body_length = max_body_length
        if not quiet:
            logger.setLevel(logging.DEBUG)

    def _fmt_errmsg(
        self, level: int, kind: str, msg: str, trace: Optional[str]
    ) -> None:
        loc = "post {}".format(self.post.id) if self.post else "ERROR_POST"
        if len(self.inline_stack) > 1:
            msg += " at {}".format(self.inline_stack)
        if self.state is not None and self.state.parents:
            msg += " inside " + "/".join(
                node.kind.name for node in self.state.parents
            )
        if trace:
            msg += "\n" + trace
        logger.log(level, "%s: %s: %s", loc, kind, msg)

    def _record(
        self, msg: str, trace: Optional[str], sortid: str
    ) -> ErrorMessageData:
        assert isinstance(msg, str)
        assert isinstance(trace, (str, type(None)))
        assert isinstance(sortid, str)
        # sortid should be a static string only used to sort
        # messages into buckets based on where they have been called
        return {
            "msg": msg,
            "trace": trace or "",
            "post": self.post.id if self.post is not None else None,
            "called_from": sortid,
            "path": tuple(self.inline_stack),
        }

    def error(
        self, msg: str, trace: Optional[str] = None, sortid="XYZunsorted"
    ) -> None:
        """Logs an error message.  The error is also saved in
        self.errors."""
        self.errors.append(self._record(msg, trace, sortid))
        self._fmt_errmsg(logging.ERROR, "ERROR", msg, trace)

    def warning(
        self, msg: str, trace: Optional[str] = None, sortid="XYZunsorted"
    ) -> None:
        """Logs a warning message.  The warning is also saved in
        self.warnings."""
        self.warnings.append(self._record(msg, trace, sortid))
        self._fmt_errmsg(logging.WARNING, "WARNING", msg, trace)

    def debug(
        self, msg: str, trace: Optional[str] = None, sortid="XYZunsorted"
    ) -> None:
        """Logs a debug message.  The message is also saved in
        self.debugs."""
        self.debugs.append(self._record(msg, trace, sortid))
        self._fmt_errmsg(logging.DEBUG, "DEBUG", msg, trace)

    def to_return(self) -> CollatedErrorReturnData:
        """Returns a dictionary with errors, warnings, and debug messages
        from the context.  The values are reset by start_post().  The value
        is JSON-compatible."""
        return {
            "errors": self.errors,
            "warnings": self.warnings,
            "debugs": self.debugs,
        }

    def start_post(self, post: Optional[Post]) -> None:
        """Starts rendering a new post.  This makes ``post`` the post whose
        links and commands parse() uses, and clears the self.errors,
        self.warnings, and self.debugs lists."""
        assert post is None or isinstance(post, Post)
        self.post = post
        self.errors = []
        self.warnings = []
        self.debugs = []
        self.inline_stack = [post.id] if post is not None else []

    def add_post(self, post: Post) -> None:
        """Registers ``post`` and writes backlinks between it and the
        registered posts it links to or is linked from."""
        assert isinstance(post, Post)
        self.posts[post.id] = post
        for dest_id in post.links:
            dest = self.posts.get(dest_id)
            if dest is not None and dest is not post:
                dest.add_backlink(post.id, LinkData(op=post.op))
        for other in self.posts.values():
            if other.id != post.id and post.id in other.links:
                post.add_backlink(other.id, LinkData(op=other.op))

    def add_links(self, post: Post, links: dict[int, LinkData]) -> None:
        """Adds links confirmed for ``post`` and writes the backlinks to
        the registered posts they point to."""
        post.links.update(links)
        for dest_id in links:
            dest = self.posts.get(dest_id)
            if dest is not None and dest is not post:
                dest.add_backlink(post.id, LinkData(op=post.op))

    def parse(
        self,
        text: str,
        state: Optional[TextState] = None,
        root: Optional[PostNode] = None,
        terminated: bool = False,
    ) -> PostNode:
        """Parses the given text into a post body tree, taking links and
        hash command results from the current post (see start_post()).
        Passing the same ``state`` to consecutive calls continues spans
        left open by the previous call."""
        return parse_body(
            self, text, state=state, root=root, terminated=terminated
        )

    def parse_post_text(
        self,
        post: Post,
        text: str,
        state: Optional[TextState] = None,
        root: Optional[PostNode] = None,
        terminated: bool = False,
    ) -> PostNode:
        """Like parse(), but for ``post`` instead of the current post."""
        prev_post = self.post
        self.post = post
        # start_post() already put the current post on the stack
        pushed = not self.inline_stack or self.inline_stack[-1] != post.id
        if pushed:
            self.inline_stack.append(post.id)
        try:
            return parse_body(
                self, text, state=state, root=root, terminated=terminated
            )
        finally:
            if pushed:
                self.inline_stack.pop()
            self.post = prev_post

    def resolve_link(self, post_id: int, token: str) -> None:
        link_fn(self, post_id, token)

    def render_command(self, m: re.Match) -> None:
        command_fn(self, m)

    def render_header(self, post: Post) -> PostNode:
        """Renders the header on top of the post."""
        header = PostNode(NodeKind.HTML, "header", {"class": "spaced"})
        if post.subject:
            header.children.append(
                PostNode(NodeKind.HTML, "h3", children=["「{}」".format(post.subject)])
            )
        header.children.append(
            PostNode(
                NodeKind.HTML,
                "b",
                {"class": "name"},
                [post.name or "Anonymous"],
            )
        )
        if post.time:
            t = datetime.fromtimestamp(post.time, tz=timezone.utc)
            header.children.append(
                PostNode(
                    NodeKind.HTML,
                    "time",
                    {"datetime": t.isoformat()},
                    [t.strftime("%d %b %Y (%a) %H:%M")],
                )
            )
        header.children.append(
            PostNode(
                NodeKind.HTML,
                "nav",
                children=[
                    PostNode(
                        NodeKind.HTML, "a", {"href": "#p{}".format(post.id)}, ["No."]
                    ),
                    PostNode(NodeKind.HTML, "a", {"class": "quote"}, [str(post.id)]),
                ],
            )
        )
        return header

    def render_article(self, post: Post, body: PostNode) -> PostNode:
        """Wraps a rendered body into the post's article."""
        cls = "glass editing" if post.editing else "glass"
        article = PostNode(
            NodeKind.ARTICLE, attrs={"id": "p{}".format(post.id), "class": cls}
        )
        article.children.append(self.render_header(post))
        article.children.append(body)
        if post.backlinks:
            article.children.append(render_backlinks(post))
        return article

    def render_post(self, post: Post) -> PostNode:
        """Renders ``post`` into a new ARTICLE subtree."""
        assert isinstance(post, Post)
        body = self.parse_post_text(post, post.body)
        return self.render_article(post, body)

    def node_to_html(
        self,
        node: PostNode,
        node_handler_fn: Optional[NodeHandlerFnCallable] = None,
    ) -> str:
        """Converts the given node tree to HTML."""
        return to_html(node, node_handler_fn=node_handler_fn)

    def node_to_text(
        self,
        node: PostNode,
        node_handler_fn: Optional[NodeHandlerFnCallable] = None,
    ) -> str:
        """Converts the given node tree to plain text."""
        return to_text(node, node_handler_fn=node_handler_fn)

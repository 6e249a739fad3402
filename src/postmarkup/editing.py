# Live editing of an open post.  The body changes one character or one
# splice at a time and is re-rendered after every change.
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import copy
from typing import TYPE_CHECKING

from .parser import NodeKind, PostNode, TextState

if TYPE_CHECKING:
    from .commands import Command
    from .core import PostRenderer
    from .links import LinkData
    from .post import Post


class PostEditError(ValueError):
    """Base class of errors for edits an open post does not accept."""


class PostClosedError(PostEditError):
    pass


class BodyTooLongError(PostEditError):
    pass


class LineEmptyError(PostEditError):
    pass


class InvalidSpliceCoordsError(PostEditError):
    pass


class SpliceTooLongError(PostEditError):
    pass


class NewlineInSpliceError(PostEditError):
    pass


class SpliceNoopError(PostEditError):
    pass


class OpenPost:
    """A post that is being edited.  Only the last line of the body can
    change.  Lines before it are committed: they are rendered once, and the
    TextState after them is kept so that every render only has to parse
    the open line again."""

    def __init__(self, ctx: "PostRenderer", post: "Post") -> None:
        if not post.editing:
            raise PostClosedError("post {} is not open".format(post.id))
        self.ctx = ctx
        self.post = post
        self.body_length = len(post.body)
        self.line = post.body.split("\n")[-1]
        self._root = PostNode(NodeKind.ROOT)
        self._state = TextState()
        self._rebuild()

    def _rebuild(self) -> None:
        """Renders the committed lines again.  Needed when their links or
        hash command results change."""
        self._root = PostNode(NodeKind.ROOT)
        self._state.reset(self._root)
        for line in self.post.body.split("\n")[:-1]:
            self._commit(line)

    def _check_open(self) -> None:
        if not self.post.editing:
            raise PostClosedError("post {} is closed".format(self.post.id))

    def _commit(self, line: str) -> None:
        self.ctx.parse_post_text(
            self.post, line, state=self._state, root=self._root, terminated=True
        )

    def append(self, char: str) -> None:
        """Appends a character to the body.  A newline commits the open
        line and starts a new one."""
        self._check_open()
        if len(char) != 1:
            raise ValueError("expected a single character, got {!r}".format(char))
        if self.body_length + 1 > self.ctx.max_body_length:
            raise BodyTooLongError(
                "body of post {} exceeds {} characters".format(
                    self.post.id, self.ctx.max_body_length
                )
            )
        self.post.body += char
        self.body_length += 1
        if char == "\n":
            self._commit(self.line)
            self.line = ""
        else:
            self.line += char

    def backspace(self) -> None:
        """Removes the last character of the open line."""
        self._check_open()
        if not self.line:
            raise LineEmptyError("line empty")
        self.line = self.line[:-1]
        self.post.body = self.post.body[:-1]
        self.body_length -= 1

    def splice(self, start: int, length: int, text: str) -> str:
        """Replaces ``length`` characters of the open line at ``start`` with
        ``text``.  Used for pastes too.  If the body would get too long the
        end of the line is cut off.  Returns the new line."""
        self._check_open()
        old = self.line
        if start < 0 or length < 0 or start + length > len(old):
            raise InvalidSpliceCoordsError(
                "invalid splice coordinates {}+{} for line of {}".format(
                    start, length, len(old)
                )
            )
        if length == 0 and not text:
            raise SpliceNoopError("splice NOOP")
        if len(text) > self.ctx.max_body_length:
            raise SpliceTooLongError("splice text too long")
        if "\n" in text:
            # Multiline splices must be split by the client
            raise NewlineInSpliceError("newline in splice text")

        new = old[:start] + text + old[start + length :]
        self.body_length += len(text) - length
        if self.body_length > self.ctx.max_body_length:
            exceeding = self.body_length - self.ctx.max_body_length
            new = new[: len(new) - exceeding]
            self.body_length = self.ctx.max_body_length

        self.post.body = self.post.body[: len(self.post.body) - len(old)] + new
        self.line = new
        return new

    def add_links(self, links: dict[int, "LinkData"]) -> None:
        """Adds links the server confirmed for committed lines."""
        self.ctx.add_links(self.post, links)
        self._rebuild()

    def add_command(self, cmd: "Command") -> None:
        """Adds the result of a hash command on a committed line."""
        self.post.commands.append(cmd)
        self._rebuild()

    def close(self) -> None:
        """Closes the post.  Its body can no longer change."""
        self._check_open()
        self.post.editing = False

    def render(self) -> PostNode:
        """Renders the post.  An open post only re-parses its open line,
        starting from a copy of the state after the committed lines."""
        if not self.post.editing:
            return self.ctx.render_post(self.post)
        state = self._state.copy()
        live = self.ctx.parse_post_text(self.post, self.line, state=state)
        # The caller owns the returned tree, so committed lines are copied
        body = PostNode(
            NodeKind.ROOT,
            children=copy.deepcopy(self._root.children) + live.children,
        )
        return self.ctx.render_article(self.post, body)

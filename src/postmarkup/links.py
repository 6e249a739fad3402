# Resolving references to other posts (">>123") into links, inlined posts
# or dead links
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from dataclasses import dataclass
from typing import TYPE_CHECKING, TypedDict

from .parser import NodeKind, PostNode

if TYPE_CHECKING:
    from .core import PostRenderer
    from .post import Post


class LinkPayload(TypedDict, total=False):
    op: int
    is_inlined: bool


@dataclass
class LinkData:
    """Data associated with a link to another post.  Always paired in a
    mapping with the ID of the linked post as the key."""

    # Parent thread ID of the post
    op: int
    # The post and its subtree are rendered inside the linking post
    is_inlined: bool = False

    @classmethod
    def from_dict(cls, data: LinkPayload) -> "LinkData":
        return cls(op=int(data["op"]), is_inlined=bool(data.get("is_inlined")))


def post_link(post_id: int, data: LinkData, current_op: int) -> PostNode:
    """Returns a navigable link to post ``post_id``."""
    text = ">>{}".format(post_id)
    if data.op == current_op:
        href = "#p{}".format(post_id)
    else:
        # Cross-thread link
        href = "/all/{}#p{}".format(data.op, post_id)
        text += " ➡"
    return PostNode(
        NodeKind.POST_LINK,
        attrs={
            "class": "post-link",
            "data-id": str(post_id),
            "data-op": str(data.op),
            "href": href,
        },
        children=[text],
    )


def inline_post_fn(ctx: "PostRenderer", post_id: int) -> None:
    """Inserts the rendered article of post ``post_id``."""
    assert ctx.state is not None
    if post_id in ctx.inline_stack:
        ctx.warning(
            "post {} inlined inside itself".format(post_id),
            trace="inline stack {}".format(ctx.inline_stack),
            sortid="links/70",
        )
        return
    target = ctx.posts.get(post_id)
    if target is None:
        ctx.debug(
            "inlined post {} not available".format(post_id),
            sortid="links/77",
        )
        return
    article = ctx.render_post(target)
    ctx.state.append(
        PostNode(
            NodeKind.INLINED_POST,
            attrs={"class": "inlined"},
            children=[article],
        )
    )


def link_fn(ctx: "PostRenderer", post_id: int, token: str) -> None:
    """Renders the post reference ``token`` pointing at ``post_id``."""
    assert ctx.state is not None
    post = ctx.post
    data = post.links.get(post_id) if post is not None else None
    if data is None:
        if post is not None and post.editing:
            # The poster may still be typing the number, and links of an
            # open post are only confirmed when its line is committed
            ctx.state.append(token)
            return
        ctx.debug("link to unknown post {}".format(post_id), sortid="links/97")
        ctx.state.append(
            PostNode(
                NodeKind.DEAD_LINK,
                attrs={"class": "dead-link"},
                children=[token],
            )
        )
        return

    ctx.state.append(post_link(post_id, data, post.op))
    if data.is_inlined:
        inline_post_fn(ctx, post_id)


def render_backlinks(post: "Post") -> PostNode:
    """Returns links to the posts linking to ``post``, by ascending ID."""
    node = PostNode(NodeKind.BACKLINKS, attrs={"class": "backlinks"})
    for i, (post_id, data) in enumerate(sorted(post.backlinks.items())):
        if i:
            node.children.append(" ")
        node.children.append(post_link(post_id, data, post.op))
    return node

# Tests for post references, inlined posts and backlinks
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from postmarkup import LinkData, Post, PostRenderer
from postmarkup.links import render_backlinks
from postmarkup.parser import NodeKind


class LinkTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ctx = PostRenderer(quiet=True)

    def parse(self, text, links=None, op=7, editing=False):
        post = Post(id=50, op=op, body=text, links=links or {}, editing=editing)
        self.ctx.start_post(post)
        return self.ctx.parse(text)

    def test_link(self):
        tree = self.parse("see >>42", {42: LinkData(op=7)})
        self.assertEqual(len(tree.children), 2)
        a, b = tree.children
        self.assertEqual(a, "see ")
        self.assertEqual(b.kind, NodeKind.POST_LINK)
        self.assertEqual(b.children, [">>42"])
        self.assertEqual(
            b.attrs,
            {
                "class": "post-link",
                "data-id": "42",
                "data-op": "7",
                "href": "#p42",
            },
        )

    def test_link_on_quote_line(self):
        tree = self.parse(">>42 yes", {42: LinkData(op=7)})
        self.assertEqual(len(tree.children), 1)
        quote = tree.children[0]
        self.assertEqual(quote.kind, NodeKind.QUOTE)
        self.assertEqual(quote.children[0].kind, NodeKind.POST_LINK)
        self.assertEqual(quote.children[1], " yes")

    def test_cross_thread_link(self):
        tree = self.parse("see >>42", {42: LinkData(op=9)})
        link = tree.children[1]
        self.assertEqual(link.attrs["href"], "/all/9#p42")
        self.assertEqual(link.children, [">>42 ➡"])

    def test_dead_link(self):
        tree = self.parse("see >>99", {42: LinkData(op=7)})
        self.assertEqual(len(tree.children), 2)
        link = tree.children[1]
        self.assertEqual(link.kind, NodeKind.DEAD_LINK)
        self.assertEqual(link.children, [">>99"])
        self.assertEqual(len(self.ctx.debugs), 1)
        self.assertEqual(self.ctx.debugs[0]["post"], 50)

    def test_unconfirmed_link_while_editing(self):
        tree = self.parse("see >>99", editing=True)
        self.assertEqual(tree.children, ["see >>99"])
        self.assertEqual(self.ctx.debugs, [])

    def test_link_inside_spoiler(self):
        tree = self.parse("a **>>42**", {42: LinkData(op=7)})
        spoiler = tree.children[1]
        self.assertEqual(spoiler.kind, NodeKind.SPOILER)
        self.assertEqual(spoiler.children[0].kind, NodeKind.POST_LINK)

    def test_link_inside_code(self):
        tree = self.parse("a ``>>42``", {42: LinkData(op=7)})
        self.assertFalse(tree.contain_node(NodeKind.POST_LINK))

    def test_link_needs_word_boundary(self):
        tree = self.parse("a>>42", {42: LinkData(op=7)})
        self.assertEqual(tree.children, ["a>>42"])

    def test_inlined_post(self):
        self.ctx.add_post(Post(id=42, op=7, body="inlined __text__"))
        post = Post(
            id=50,
            op=7,
            body="see >>42",
            links={42: LinkData(op=7, is_inlined=True)},
        )
        self.ctx.add_post(post)
        self.ctx.start_post(post)
        article = self.ctx.render_post(post)
        self.assertEqual(article.kind, NodeKind.ARTICLE)
        body = article.children[1]
        self.assertEqual(body.kind, NodeKind.ROOT)
        self.assertEqual(len(body.children), 3)
        a, b, c = body.children
        self.assertEqual(a, "see ")
        self.assertEqual(b.kind, NodeKind.POST_LINK)
        self.assertEqual(c.kind, NodeKind.INLINED_POST)
        inlined = c.children[0]
        self.assertEqual(inlined.kind, NodeKind.ARTICLE)
        self.assertEqual(inlined.attrs["id"], "p42")
        inlined_body = inlined.children[1]
        self.assertEqual(inlined_body.children[0], "inlined ")
        self.assertEqual(inlined_body.children[1].kind, NodeKind.BOLD)
        self.assertEqual(self.ctx.warnings, [])
        self.assertEqual(self.ctx.inline_stack, [50])

    def test_inline_self(self):
        post = Post(
            id=1, op=1, body="x >>1", links={1: LinkData(op=1, is_inlined=True)}
        )
        self.ctx.add_post(post)
        self.ctx.start_post(post)
        article = self.ctx.render_post(post)
        self.assertFalse(article.contain_node(NodeKind.INLINED_POST))
        self.assertTrue(article.contain_node(NodeKind.POST_LINK))
        self.assertEqual(len(self.ctx.warnings), 1)
        self.assertEqual(post.backlinks, {})

    def test_inline_cycle(self):
        a = Post(id=1, op=1, body="a >>2", links={2: LinkData(1, True)})
        b = Post(id=2, op=1, body="b >>1", links={1: LinkData(1, True)})
        self.ctx.add_post(a)
        self.ctx.add_post(b)
        self.ctx.start_post(a)
        article = self.ctx.render_post(a)
        inlined = list(article.find_child_recursively(NodeKind.INLINED_POST))
        self.assertEqual(len(inlined), 1)
        self.assertEqual(len(self.ctx.warnings), 1)
        self.assertEqual(self.ctx.warnings[0]["path"], (1, 2))
        self.assertEqual(self.ctx.inline_stack, [1])

    def test_render_current_post_path(self):
        post = Post(id=3, op=1, body="see >>99")
        self.ctx.start_post(post)
        self.ctx.render_post(post)
        self.assertEqual(self.ctx.debugs[0]["path"], (3,))
        self.assertEqual(self.ctx.inline_stack, [3])

    def test_inline_unknown_post(self):
        tree = self.parse("see >>42", {42: LinkData(op=7, is_inlined=True)})
        self.assertEqual(len(tree.children), 2)
        self.assertEqual(tree.children[1].kind, NodeKind.POST_LINK)
        self.assertEqual(len(self.ctx.debugs), 1)

    def test_backlinks_sorted(self):
        post = Post(id=10, op=1)
        post.add_backlink(30, LinkData(op=1))
        post.add_backlink(20, LinkData(op=2))
        self.assertEqual(list(post.backlinks), [20, 30])
        node = render_backlinks(post)
        self.assertEqual(node.kind, NodeKind.BACKLINKS)
        self.assertEqual(len(node.children), 3)
        a, b, c = node.children
        self.assertEqual(a.attrs["data-id"], "20")
        self.assertEqual(a.attrs["href"], "/all/2#p20")
        self.assertEqual(b, " ")
        self.assertEqual(c.attrs["data-id"], "30")

    def test_add_post_backlinks(self):
        self.ctx.add_post(Post(id=1, op=1))
        self.ctx.add_post(Post(id=2, op=1, links={1: LinkData(op=1)}))
        self.assertEqual(self.ctx.posts[1].backlinks, {2: LinkData(op=1)})
        # Linking post registered before the linked one
        self.ctx.add_post(Post(id=4, op=1, links={3: LinkData(op=1)}))
        self.ctx.add_post(Post(id=3, op=1))
        self.assertEqual(self.ctx.posts[3].backlinks, {4: LinkData(op=1)})

    def test_add_links(self):
        target = Post(id=1, op=1)
        post = Post(id=2, op=1, body="see >>1")
        self.ctx.add_post(target)
        self.ctx.add_post(post)
        self.assertEqual(target.backlinks, {})
        self.ctx.add_links(post, {1: LinkData(op=1)})
        self.assertEqual(target.backlinks, {2: LinkData(op=1)})
        self.ctx.start_post(post)
        article = self.ctx.render_post(target)
        self.assertTrue(article.contain_node(NodeKind.BACKLINKS))

    def test_post_from_dict(self):
        post = Post.from_dict(
            {
                "id": 2,
                "op": 1,
                "body": ">>1 #flip",
                "links": {"1": {"op": 1}},
                "backlinks": {"5": {"op": 1}, "3": {"op": 1, "is_inlined": True}},
                "commands": [{"type": 1, "val": True}],
            }
        )
        self.assertEqual(post.links, {1: LinkData(op=1)})
        self.assertEqual(list(post.backlinks), [3, 5])
        self.assertTrue(post.backlinks[3].is_inlined)
        self.assertEqual(len(post.commands), 1)
        self.assertFalse(post.editing)

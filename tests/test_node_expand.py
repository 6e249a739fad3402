# Tests for converting post trees to HTML and plain text
#
# Copyright (c) 2020-2021 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from postmarkup import Post, PostRenderer
from postmarkup.commands import FlipCommand
from postmarkup.links import LinkData
from postmarkup.parser import NodeKind, PostNode


class NodeExpTests(unittest.TestCase):
    def setUp(self):
        self.ctx = PostRenderer(quiet=True)

    def tohtml(self, text, expected, **kwargs):
        post = Post(id=1, op=1, body=text, **kwargs)
        self.ctx.start_post(post)
        root = self.ctx.parse(text)
        ret = self.ctx.node_to_html(root.children)
        self.assertEqual(ret, expected)

    def totext(self, text, expected):
        self.ctx.start_post(Post(id=1, op=1, body=text))
        root = self.ctx.parse(text)
        ret = self.ctx.node_to_text(root)
        self.assertEqual(ret, expected)

    def test_html1(self):
        self.tohtml("", "")

    def test_html2(self):
        self.tohtml("a **b** c", "a <del>b</del> c")

    def test_html3(self):
        self.tohtml("__a~~b~~__", "<b>a<i>b</i></b>")

    def test_html4(self):
        self.tohtml("a\nb", "a<br>b")

    def test_html5(self):
        self.tohtml(">q", "<em>&gt;q</em>")

    def test_html6(self):
        self.tohtml("<script>&", "&lt;script&gt;&amp;")

    def test_html7(self):
        self.tohtml("x >>99", 'x <span class="dead-link">&gt;&gt;99</span>')

    def test_html8(self):
        self.tohtml(
            "x >>2",
            'x <a class="post-link" data-id="2" data-op="1" href="#p2">'
            "&gt;&gt;2</a>",
            links={2: LinkData(op=1)},
        )

    def test_html9(self):
        self.tohtml(
            "#flip", "<strong>#flip (flop)</strong>", commands=[FlipCommand(False)]
        )

    def test_html10(self):
        self.tohtml("``>``", '<code><span>&gt;</span></code>')

    def test_attrs_escaped(self):
        node = PostNode(NodeKind.HTML, "a", {"title": 'x"<y'}, ["t"])
        self.assertEqual(
            self.ctx.node_to_html(node), '<a title="x&quot;&lt;y">t</a>'
        )

    def test_invalid_node(self):
        with self.assertRaises(RuntimeError):
            self.ctx.node_to_html(PostNode(NodeKind.ROOT, children=[1]))

    def test_article(self):
        post = Post(id=5, op=1, body="hi")
        self.ctx.start_post(post)
        ret = self.ctx.node_to_html(self.ctx.render_post(post))
        self.assertEqual(
            ret,
            '<article id="p5" class="glass"><header class="spaced">'
            '<b class="name">Anonymous</b><nav><a href="#p5">No.</a>'
            '<a class="quote">5</a></nav></header>'
            "<blockquote>hi</blockquote></article>",
        )

    def test_article_header(self):
        post = Post(
            id=5,
            op=5,
            body="hi",
            time=86400,
            name="foo",
            subject="bar",
            editing=True,
        )
        self.ctx.start_post(post)
        ret = self.ctx.node_to_html(self.ctx.render_post(post))
        self.assertTrue(
            ret.startswith('<article id="p5" class="glass editing">')
        )
        self.assertIn("<h3>「bar」</h3>", ret)
        self.assertIn('<b class="name">foo</b>', ret)
        self.assertIn(
            '<time datetime="1970-01-02T00:00:00+00:00">'
            "02 Jan 1970 (Fri) 00:00</time>",
            ret,
        )

    def test_text1(self):
        self.totext("a **b**\n~~c~~", "a b\nc")

    def test_text2(self):
        self.totext("``>>1``", ">>1")

    def test_text3(self):
        post = Post(id=5, op=1, body="hi")
        post.add_backlink(6, LinkData(op=1))
        self.ctx.start_post(post)
        article = self.ctx.render_post(post)
        body = article.children[1]
        self.assertEqual(self.ctx.node_to_text(body), "hi")
        self.assertEqual(self.ctx.node_to_text(article), "hi")

    def test_node_handler_fn(self):
        def handler(node):
            if node.kind == NodeKind.SPOILER:
                return node.children
            return None

        self.ctx.start_post(Post(id=1, op=1, body="a **b** c"))
        root = self.ctx.parse("a **b** c")
        ret = self.ctx.node_to_html(root, node_handler_fn=handler)
        self.assertEqual(ret, "<blockquote>a b c</blockquote>")
        ret = self.ctx.node_to_text(root, node_handler_fn=handler)
        self.assertEqual(ret, "a b c")

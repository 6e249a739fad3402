# Tests for syntax highlighting inside code spans
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from pygments.token import Comment, Keyword, Name, String

from postmarkup.highlight import SyntaxHighlighter, token_class


class HighlightTests(unittest.TestCase):
    def setUp(self) -> None:
        self.highlighter = SyntaxHighlighter()

    def test_token_class(self):
        self.assertEqual(token_class(Keyword.Type), "syntax-keyword")
        self.assertEqual(token_class(String.Double), "syntax-string")
        self.assertEqual(token_class(Comment.Single), "syntax-comment")
        self.assertIsNone(token_class(Name))

    def test_tokens_keep_text(self):
        text = 'int x = 5; /* c */ char *s = "a";'
        tokens = self.highlighter.tokens(text)
        self.assertEqual("".join(value for _, value in tokens), text)
        self.assertIn(("syntax-keyword", "int"), tokens)
        self.assertIn(("syntax-comment", "/* c */"), tokens)

    def test_leading_space_kept(self):
        tokens = self.highlighter.tokens("  return 0")
        self.assertEqual("".join(value for _, value in tokens), "  return 0")

    def test_runs_merged(self):
        tokens = self.highlighter.tokens("foo bar")
        self.assertEqual(tokens, [(None, "foo bar")])

    def test_cached(self):
        a = self.highlighter.tokens("int x")
        b = self.highlighter.tokens("int x")
        self.assertIs(a, b)

    def test_unknown_language(self):
        with self.assertLogs("postmarkup", level="WARNING"):
            highlighter = SyntaxHighlighter("no-such-language")
        self.assertEqual(highlighter.tokens("int x"), [(None, "int x")])

    def test_text_not_normalized(self):
        for text in ("a\rb", "a\r\nb", "\ufeffx"):
            tokens = self.highlighter.tokens(text)
            self.assertEqual("".join(value for _, value in tokens), text)

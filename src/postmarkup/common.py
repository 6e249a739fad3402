# Some definitions used by the body parser, the command renderer and the
# live editing code
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re

# Maximum length of a post body in characters
MAX_LENGTH_BODY: int = 2000

# Number of successive empty lines that are still rendered as line breaks.
# Longer runs are collapsed.
MAX_SUCCESSIVE_NEWLINES: int = 2

# Limits of the #NdM dice command
DICE_MAX_ROLLS: int = 10
DICE_MAX_FACES: int = 10000

# Post references and hash commands.  These are only recognized as whole
# words, i.e., delimited by whitespace or by the edges of the text fragment
# being scanned (formatting delimiters split fragments, so "**>>12**" is a
# spoilered link).
MARKER_RE: re.Pattern[str] = re.compile(
    r"(?<!\S)(?:"
    r">>(?P<link>\d+)"
    r"|#(?P<command>flip|8ball|pyu|pcount"
    r"|(?P<rolls>\d*)d(?P<faces>\d+)"
    r"|sw(?P<hours>\d+):(?P<minutes>\d+)(?::(?P<seconds>\d+))?"
    r"(?P<offset>[+-]\d+)?)"
    r")(?!\S)"
)

# Character that starts a quoted line
QUOTE_CHAR: str = ">"

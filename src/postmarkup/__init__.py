from .commands import (
    Command,
    CommandType,
    CommandUnderflowError,
    DiceCommand,
    EightBallCommand,
    FlipCommand,
    PostCountCommand,
    PyuCommand,
    SyncWatchCommand,
)
from .core import PostRenderer
from .editing import OpenPost, PostEditError
from .links import LinkData
from .parser import NodeKind, ParserStackError, PostNode, TextState
from .post import Post

__all__ = (
    "PostRenderer",
    "Post",
    "PostNode",
    "NodeKind",
    "TextState",
    "ParserStackError",
    "LinkData",
    "Command",
    "CommandType",
    "CommandUnderflowError",
    "DiceCommand",
    "FlipCommand",
    "EightBallCommand",
    "SyncWatchCommand",
    "PyuCommand",
    "PostCountCommand",
    "OpenPost",
    "PostEditError",
)

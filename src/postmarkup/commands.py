# Hash commands: results of server-side computations (dice, coin flips,
# counters, ...) rendered at the position of their marker in the text
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import enum
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, TypedDict, Union

from .common import DICE_MAX_FACES, DICE_MAX_ROLLS
from .parser import NodeKind, PostNode

if TYPE_CHECKING:
    from .core import PostRenderer


@enum.unique
class CommandType(enum.Enum):
    """Hash command types.  Values are the type codes used in payloads."""

    DICE = 0
    FLIP = 1
    EIGHT_BALL = 2
    SYNC_WATCH = 3
    PYU = 4
    PCOUNT = 5


class CommandData(TypedDict):
    type: int
    val: Any


@dataclass(frozen=True)
class DiceCommand:
    rolls: tuple[int, ...]  # Face values, in throw order
    type: CommandType = CommandType.DICE


@dataclass(frozen=True)
class FlipCommand:
    value: bool
    type: CommandType = CommandType.FLIP


@dataclass(frozen=True)
class EightBallCommand:
    answer: str
    type: CommandType = CommandType.EIGHT_BALL


@dataclass(frozen=True)
class SyncWatchCommand:
    hours: int
    minutes: int
    seconds: int
    start: int  # Unix time the timer starts at
    end: int  # Unix time the timer ends at
    type: CommandType = CommandType.SYNC_WATCH


@dataclass(frozen=True)
class PyuCommand:
    count: int
    type: CommandType = CommandType.PYU


@dataclass(frozen=True)
class PostCountCommand:
    count: int
    type: CommandType = CommandType.PCOUNT


Command = Union[
    DiceCommand,
    FlipCommand,
    EightBallCommand,
    SyncWatchCommand,
    PyuCommand,
    PostCountCommand,
]


def command_from_dict(data: CommandData) -> Command:
    """Builds a Command from its payload, ``{"type": int, "val": ...}``."""
    typ = CommandType(data["type"])
    val = data["val"]
    if typ == CommandType.DICE:
        return DiceCommand(tuple(int(x) for x in val))
    if typ == CommandType.FLIP:
        return FlipCommand(bool(val))
    if typ == CommandType.EIGHT_BALL:
        return EightBallCommand(str(val))
    if typ == CommandType.SYNC_WATCH:
        hours, minutes, seconds, start, end = (int(x) for x in val)
        return SyncWatchCommand(hours, minutes, seconds, start, end)
    if typ == CommandType.PYU:
        return PyuCommand(int(val))
    return PostCountCommand(int(val))


class CommandUnderflowError(RuntimeError):
    """More commands were consumed than the post has.  The text and its
    command list are out of sync; this is a bug in the caller or the
    parser, not something the poster can cause."""


def peek_command(ctx: "PostRenderer") -> Optional[Command]:
    """Returns the next unconsumed command of the post being rendered."""
    assert ctx.state is not None
    commands = ctx.post.commands if ctx.post is not None else []
    if ctx.state.command_index < len(commands):
        return commands[ctx.state.command_index]
    return None


def consume_command(ctx: "PostRenderer") -> Command:
    """Consumes and returns the next command of the post being rendered."""
    cmd = peek_command(ctx)
    if cmd is None:
        assert ctx.state is not None
        raise CommandUnderflowError(
            "command #{} requested, post {} has only {}".format(
                ctx.state.command_index,
                ctx.post.id if ctx.post is not None else None,
                len(ctx.post.commands) if ctx.post is not None else 0,
            )
        )
    assert ctx.state is not None
    ctx.state.command_index += 1
    return cmd


def marker_type(m: re.Match) -> Optional[CommandType]:
    """Returns the command type a MARKER_RE match stands for, or None if
    the marker is out of the allowed range."""
    name = m.group("command")
    if name == "flip":
        return CommandType.FLIP
    if name == "8ball":
        return CommandType.EIGHT_BALL
    if name == "pyu":
        return CommandType.PYU
    if name == "pcount":
        return CommandType.PCOUNT
    if m.group("faces") is not None:
        rolls = int(m.group("rolls") or "1")
        faces = int(m.group("faces"))
        if not 0 < rolls <= DICE_MAX_ROLLS or not 0 < faces <= DICE_MAX_FACES:
            return None
        return CommandType.DICE
    assert m.group("hours") is not None
    return CommandType.SYNC_WATCH


def _command_node(token: str, result: str) -> PostNode:
    return PostNode(NodeKind.COMMAND, children=["{} ({})".format(token, result)])


def dice_fn(ctx: "PostRenderer", token: str, cmd: DiceCommand) -> None:
    assert ctx.state is not None
    rolls = cmd.rolls
    if len(rolls) == 1:
        result = str(rolls[0])
    else:
        result = "{} = {}".format(" + ".join(map(str, rolls)), sum(rolls))
    ctx.state.dice_index += len(rolls)
    ctx.state.append(_command_node(token, result))


def flip_fn(ctx: "PostRenderer", token: str, cmd: FlipCommand) -> None:
    assert ctx.state is not None
    ctx.state.append(_command_node(token, "flip" if cmd.value else "flop"))


def eight_ball_fn(
    ctx: "PostRenderer", token: str, cmd: EightBallCommand
) -> None:
    assert ctx.state is not None
    ctx.state.append(_command_node(token, cmd.answer))


def sync_watch_fn(
    ctx: "PostRenderer", token: str, cmd: SyncWatchCommand
) -> None:
    assert ctx.state is not None
    ctx.state.have_syncwatch = True
    ctx.state.append(
        PostNode(
            NodeKind.SYNCWATCH,
            attrs={
                "class": "embed syncwatch",
                "data-hour": str(cmd.hours),
                "data-min": str(cmd.minutes),
                "data-sec": str(cmd.seconds),
                "data-start": str(cmd.start),
                "data-end": str(cmd.end),
            },
            children=[token],
        )
    )


def counter_fn(
    ctx: "PostRenderer", token: str, cmd: Union[PyuCommand, PostCountCommand]
) -> None:
    assert ctx.state is not None
    ctx.state.append(_command_node(token, str(cmd.count)))


# Maps command type to the function rendering it
command_renderers: dict[CommandType, Callable[..., None]] = {
    CommandType.DICE: dice_fn,
    CommandType.FLIP: flip_fn,
    CommandType.EIGHT_BALL: eight_ball_fn,
    CommandType.SYNC_WATCH: sync_watch_fn,
    CommandType.PYU: counter_fn,
    CommandType.PCOUNT: counter_fn,
}
assert set(command_renderers) == set(CommandType)


def command_fn(ctx: "PostRenderer", m: re.Match) -> None:
    """Renders the hash command marker matched by ``m``.  The marker takes
    the next command of the post if its type matches; otherwise it stays
    literal text and nothing is consumed."""
    assert ctx.state is not None
    token = m.group(0)
    typ = marker_type(m)
    if typ is None:
        ctx.state.append(token)
        return
    cmd = peek_command(ctx)
    if cmd is None or cmd.type != typ:
        ctx.debug(
            "no {} result for {!r}, next is {}".format(
                typ.name, token, cmd.type.name if cmd is not None else None
            ),
            sortid="commands/201",
        )
        ctx.state.append(token)
        return
    consume_command(ctx)
    command_renderers[typ](ctx, token, cmd)

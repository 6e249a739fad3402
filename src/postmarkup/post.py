# Post model and its payload format
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from dataclasses import dataclass, field
from typing import Optional, TypedDict

from .commands import Command, CommandData, command_from_dict
from .links import LinkData, LinkPayload


class PostData(TypedDict, total=False):
    id: int
    op: int
    time: int
    body: str
    board: str
    editing: bool
    name: str
    subject: str
    commands: list[CommandData]
    links: dict[str, LinkPayload]
    backlinks: dict[str, LinkPayload]


@dataclass
class Post:
    id: int
    op: int  # Parent thread ID
    body: str = ""
    time: int = 0  # Unix time
    board: str = ""
    editing: bool = False  # Post is currently being edited
    name: Optional[str] = None  # Name of poster
    subject: Optional[str] = None  # Subject of thread.  Only for OPs.
    commands: list[Command] = field(default_factory=list)
    links: dict[int, LinkData] = field(default_factory=dict)
    backlinks: dict[int, LinkData] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: PostData) -> "Post":
        """Builds a post from its JSON-compatible payload.  Mapping keys
        are post IDs, which JSON can only carry as strings."""
        post = cls(
            id=int(data["id"]),
            op=int(data["op"]),
            body=data.get("body", ""),
            time=int(data.get("time", 0)),
            board=data.get("board", ""),
            editing=bool(data.get("editing", False)),
            name=data.get("name"),
            subject=data.get("subject"),
            commands=[command_from_dict(x) for x in data.get("commands", [])],
            links={
                int(k): LinkData.from_dict(v)
                for k, v in data.get("links", {}).items()
            },
        )
        for k, v in data.get("backlinks", {}).items():
            post.add_backlink(int(k), LinkData.from_dict(v))
        return post

    def add_backlink(self, post_id: int, data: LinkData) -> None:
        """Records that post ``post_id`` links to this post.  Backlinks are
        kept ordered by post ID."""
        self.backlinks[post_id] = data
        self.backlinks = dict(sorted(self.backlinks.items()))

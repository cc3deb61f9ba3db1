from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .constants import INTERACTION_TYPE_APPLICATION_COMMAND, INTERACTION_TYPE_PING


def _as_id(value: object) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    token = str(value).strip()
    return token or None


def _as_str(value: object) -> Optional[str]:
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class User:
    id: Optional[str]
    username: Optional[str] = None
    global_name: Optional[str] = None
    bot: bool = False

    @classmethod
    def from_payload(cls, payload: object) -> Optional["User"]:
        if not isinstance(payload, Mapping):
            return None
        return cls(
            id=_as_id(payload.get("id")),
            username=_as_str(payload.get("username")),
            global_name=_as_str(payload.get("global_name")),
            bot=bool(payload.get("bot", False)),
        )


@dataclass(frozen=True)
class Member:
    user: Optional[User]
    nick: Optional[str] = None
    roles: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: object) -> Optional["Member"]:
        if not isinstance(payload, Mapping):
            return None
        raw_roles = payload.get("roles")
        roles = (
            tuple(str(role) for role in raw_roles if role is not None)
            if isinstance(raw_roles, list)
            else ()
        )
        return cls(
            user=User.from_payload(payload.get("user")),
            nick=_as_str(payload.get("nick")),
            roles=roles,
        )


@dataclass(frozen=True)
class CommandOption:
    name: str
    type: Optional[int]
    value: Any = None


@dataclass(frozen=True)
class CommandData:
    name: str
    options: tuple[CommandOption, ...] = ()

    @classmethod
    def from_payload(cls, payload: object) -> Optional["CommandData"]:
        if not isinstance(payload, Mapping):
            return None
        name = payload.get("name")
        options: list[CommandOption] = []
        raw_options = payload.get("options")
        if isinstance(raw_options, list):
            for item in raw_options:
                if not isinstance(item, Mapping):
                    continue
                option_name = item.get("name")
                if not isinstance(option_name, str) or not option_name:
                    continue
                option_type = item.get("type")
                options.append(
                    CommandOption(
                        name=option_name,
                        type=option_type if isinstance(option_type, int) else None,
                        value=item.get("value"),
                    )
                )
        return cls(name=name if isinstance(name, str) else "", options=tuple(options))

    def option_value(self, name: str) -> Any:
        for option in self.options:
            if option.name == name:
                return option.value
        return None


@dataclass(frozen=True)
class Interaction:
    """One inbound interaction event, parsed from the request body."""

    id: str
    application_id: Optional[str]
    type: int
    token: str = ""
    version: int = 1
    data: Optional[CommandData] = None
    guild_id: Optional[str] = None
    channel_id: Optional[str] = None
    user: Optional[User] = None
    member: Optional[Member] = None

    @property
    def is_ping(self) -> bool:
        return self.type == INTERACTION_TYPE_PING

    @property
    def is_command(self) -> bool:
        return self.type == INTERACTION_TYPE_APPLICATION_COMMAND

    @property
    def command_name(self) -> Optional[str]:
        if self.data is None or not self.data.name:
            return None
        return self.data.name

    @property
    def user_id(self) -> Optional[str]:
        """Direct ``user.id`` first, then ``member.user.id``."""
        if self.user is not None and self.user.id:
            return self.user.id
        if self.member is not None and self.member.user is not None:
            return self.member.user.id
        return None

    @property
    def member_roles(self) -> tuple[str, ...]:
        return self.member.roles if self.member is not None else ()


def parse_interaction(payload: Mapping[str, Any]) -> Interaction:
    """Build an ``Interaction`` from a decoded JSON object.

    Structural checks (ids, command data) belong to the validation chain;
    parsing only normalizes what is present.
    """
    raw_type = payload.get("type")
    raw_version = payload.get("version")
    return Interaction(
        id=_as_str(payload.get("id")) or "",
        application_id=_as_str(payload.get("application_id")),
        type=raw_type if isinstance(raw_type, int) and not isinstance(raw_type, bool) else 0,
        token=_as_str(payload.get("token")) or "",
        version=raw_version if isinstance(raw_version, int) else 1,
        data=CommandData.from_payload(payload.get("data")),
        guild_id=_as_id(payload.get("guild_id")),
        channel_id=_as_id(payload.get("channel_id")),
        user=User.from_payload(payload.get("user")),
        member=Member.from_payload(payload.get("member")),
    )

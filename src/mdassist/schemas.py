from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal

from pydantic import BaseModel

Role = Literal["user", "system"]
InputKind = Literal["text", "password"]

ButtonHandler = Callable[[dict[str, str]], Awaitable[Any] | Any]
MenuAction = Callable[[], Awaitable[Any] | Any]


class Message(BaseModel):
    role: Role
    content: str


@dataclass
class ModalInput:
    id: str
    label: str
    kind: InputKind = "text"
    placeholder: str = ""
    default: str = ""


@dataclass
class ModalButton:
    label: str
    on_click: ButtonHandler | None = None


@dataclass
class Modal:
    title: str
    body: str
    inputs: list[ModalInput] = field(default_factory=list)
    buttons: list[ModalButton] = field(default_factory=list)


@dataclass
class MenuItem:
    id: str
    title: str
    action: MenuAction

from typing import Protocol

from mdassist.schemas import MenuItem, Modal


class EditorContext(Protocol):
    """What the editor hands to an extension on activation."""

    def add_menu_item(self, item: MenuItem) -> None: ...

    def show_modal(self, modal: Modal) -> None: ...

    def get_editor_value(self) -> str: ...

    def set_editor_value(self, value: str) -> None: ...

import inspect
from collections import deque

from prompt_toolkit import PromptSession
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.spinner import Spinner
from rich.text import Text

from mdassist.schemas import MenuItem, Modal


class ConsoleHost:
    """Terminal stand-in for the editor: one in-memory Markdown buffer."""

    def __init__(self, console: Console, prompt_session: PromptSession, text: str = ""):
        self._console = console
        self._prompt_session = prompt_session
        self._text = text
        self._menu_items: list[MenuItem] = []
        self._modals: deque[Modal] = deque()

    @property
    def menu_items(self) -> list[MenuItem]:
        return list(self._menu_items)

    def add_menu_item(self, item: MenuItem) -> None:
        self._menu_items.append(item)

    def show_modal(self, modal: Modal) -> None:
        if _is_notice(modal):
            self._print_modal(modal)
            return
        self._modals.append(modal)

    def get_editor_value(self) -> str:
        return self._text

    def set_editor_value(self, value: str) -> None:
        self._text = value

    async def start(self):
        while True:
            try:
                user_input = await self._prompt_session.prompt_async("» ")
            except (EOFError, KeyboardInterrupt):
                return
            if user_input.strip() == "/quit":
                return
            await self.execute(user_input)

    async def execute(self, user_input: str):
        command = user_input.strip()
        if command == "/menu":
            await self._open_menu()
        elif command == "/show":
            self._console.print(
                Panel(
                    Markdown(self._text or "*(empty)*"),
                    title="📝",
                    title_align="right",
                )
            )
        elif command == "/clear":
            self._text = ""
        elif command.startswith("/"):
            self._console.print(
                self._create_panel(f"Unknown command: {command}", error=True)
            )
        elif command:
            self._append_line(user_input.rstrip())
        await self._drain_modals()

    def _append_line(self, line: str):
        if self._text and not self._text.endswith(("\n", " ")):
            self._text += "\n"
        self._text += line

    async def _open_menu(self):
        if not self._menu_items:
            self._console.print(
                self._create_panel("No menu items registered", error=True)
            )
            return
        item = self._menu_items[0]
        if len(self._menu_items) > 1:
            index = await self._choose([m.title for m in self._menu_items])
            if index is None:
                return
            item = self._menu_items[index]
        await self._run(item.action)

    async def _drain_modals(self):
        while self._modals:
            await self._present(self._modals.popleft())

    def _print_modal(self, modal: Modal):
        self._console.print(self._create_panel(Text(modal.body), title=modal.title))

    async def _present(self, modal: Modal):
        self._print_modal(modal)
        values = {}
        for field in modal.inputs:
            values[field.id] = await self._prompt_session.prompt_async(
                f"{field.label}: ",
                default=field.default,
                is_password=field.kind == "password",
            )
        index = await self._choose([b.label for b in modal.buttons])
        if index is None:
            return
        button = modal.buttons[index]
        if button.on_click is not None:
            await self._run(button.on_click, values)

    async def _choose(self, labels: list[str]) -> int | None:
        lines = [Text(f"  {i}. {label}") for i, label in enumerate(labels, start=1)]
        self._console.print(Text("\n").join(lines))
        choice = (await self._prompt_session.prompt_async("Choose: ")).strip()
        if not choice.isdigit() or not 1 <= int(choice) <= len(labels):
            self._console.print(
                self._create_panel(f"Invalid choice: {choice}", error=True)
            )
            return None
        return int(choice) - 1

    async def _run(self, handler, *args):
        with Live(Spinner("dots"), console=self._console, transient=True):
            result = handler(*args)
            if inspect.isawaitable(result):
                await result

    def _create_panel(
        self, content: str | Text, title: str = "⚡", error: bool = False
    ) -> Panel:
        return Panel.fit(
            content,
            title=title,
            title_align="right",
            border_style="red" if error else "default",
        )


def _is_notice(modal: Modal) -> bool:
    return not modal.inputs and len(modal.buttons) <= 1

from loguru import logger

from mdassist.config import ConfigStore
from mdassist.document import (
    POLISHING,
    THINKING,
    Block,
    Document,
    answer_block,
    chat_section,
    question_block,
)
from mdassist.errors import (
    AssistantError,
    OperationInProgress,
    UserInputEmpty,
)
from mdassist.guard import OperationGuard
from mdassist.host import EditorContext
from mdassist.llm_client import LLMClient
from mdassist.prompts import (
    CHAT_SYSTEM_PROMPT,
    CONNECTION_TEST_PROMPT,
    MENU_ITEM_ID,
    MENU_TITLE,
    POLISH_SYSTEM_PROMPT,
    POLISH_USER_PROMPT,
)
from mdassist.schemas import MenuItem, Message, Modal, ModalButton, ModalInput

CONFIGURE_FIRST = "Configure your API information via [⚙️ API settings] first."


class Assistant:
    def __init__(
        self,
        context: EditorContext,
        llm_client: LLMClient,
        config_store: ConfigStore | None = None,
        guard: OperationGuard | None = None,
    ):
        self._context = context
        self._llm_client = llm_client
        self._config_store = config_store or ConfigStore()
        self._guard = guard or OperationGuard()

    @property
    def config_store(self) -> ConfigStore:
        return self._config_store

    def register(self):
        self._context.add_menu_item(
            MenuItem(id=MENU_ITEM_ID, title=MENU_TITLE, action=self.open_menu)
        )

    def open_menu(self):
        self._context.show_modal(
            Modal(
                title="AI Assistant",
                body="Choose an AI action to run:",
                buttons=[
                    ModalButton("🤖 Polish document", lambda _: self.polish()),
                    ModalButton(
                        "📝 Start document chat", lambda _: self.start_chat()
                    ),
                    ModalButton("💬 Ask about document", lambda _: self.ask()),
                    ModalButton(
                        "🧪 Test connection", lambda _: self.test_connection()
                    ),
                    ModalButton("⚙️ API settings", lambda _: self.open_settings()),
                    ModalButton("Cancel"),
                ],
            )
        )

    def open_settings(self):
        config = self._config_store.get()
        self._context.show_modal(
            Modal(
                title="⚙️ API settings",
                body=(
                    "Configure your LLM API. The values are kept in memory "
                    "only and are reset when the application closes."
                ),
                inputs=[
                    ModalInput(
                        id="apiEndpoint",
                        label="API Endpoint",
                        placeholder="e.g. https://api.openai.com/v1/chat/completions",
                        default=config.endpoint,
                    ),
                    ModalInput(
                        id="apiKey",
                        label="API Key",
                        kind="password",
                        placeholder="Enter your API key",
                        default=config.api_key,
                    ),
                ],
                buttons=[
                    ModalButton("Save", self.save_settings),
                    ModalButton("Cancel"),
                ],
            )
        )

    def save_settings(self, values: dict[str, str]):
        config = self._config_store.set(
            values.get("apiEndpoint") or "", values.get("apiKey") or ""
        )
        if config.is_complete:
            logger.info("API settings saved for {}", config.endpoint)
            self.notify(
                "✅ Settings saved! You can now test the connection "
                "or use the other AI actions."
            )
        else:
            logger.warning("API settings saved with an empty endpoint or key")
            self.notify("⚠️ Make sure both the endpoint and the key are filled in.")

    async def polish(self):
        config = self._config_store.get()
        if not config.is_complete:
            self.notify(CONFIGURE_FIRST)
            return
        try:
            with self._guard.hold("polish"):
                original = self._context.get_editor_value()
                if not original.strip():
                    raise UserInputEmpty("The editor is empty, nothing to polish.")

                document = Document.parse(original)
                placeholder = document.append_placeholder(POLISHING)
                written = self._write(document)
                messages = [
                    Message(role="system", content=POLISH_SYSTEM_PROMPT),
                    Message(
                        role="user", content=POLISH_USER_PROMPT.format(text=original)
                    ),
                ]
                try:
                    polished = await self._llm_client.completion(config, messages)
                except Exception:
                    self._settle(document, placeholder, written)
                    raise
                self._context.set_editor_value(polished)
                logger.info(
                    "Polished document ({} -> {} chars)", len(original), len(polished)
                )
        except Exception as e:
            self._report("AI polishing", e)

    def start_chat(self):
        try:
            with self._guard.hold("start chat"):
                document = Document.parse(self._context.get_editor_value())
                if document.chat_heading is None:
                    for block in chat_section():
                        document.append(block)
                else:
                    document.append(question_block())
                self._write(document)
        except Exception as e:
            self._report("Starting the document chat", e)

    async def ask(self):
        config = self._config_store.get()
        if not config.is_complete:
            self.notify(CONFIGURE_FIRST)
            return
        try:
            with self._guard.hold("document chat"):
                document = Document.parse(self._context.get_editor_value())
                if document.chat_heading is None:
                    raise UserInputEmpty(
                        "No AI chat section found. "
                        'Use "Start document chat" first.'
                    )
                question = document.last_question()
                if question is None:
                    raise UserInputEmpty(
                        "No question found in the chat section. "
                        "Type your question after **You:**."
                    )
                if not question.body:
                    raise UserInputEmpty(
                        "Your latest question is empty. Type it and try again."
                    )

                messages = [
                    Message(
                        role="system",
                        content=CHAT_SYSTEM_PROMPT.format(
                            document=document.context_text
                        ),
                    ),
                    Message(role="user", content=question.body),
                ]
                placeholder = document.append_placeholder(THINKING)
                written = self._write(document)
                try:
                    answer = await self._llm_client.completion(config, messages)
                except Exception:
                    self._settle(document, placeholder, written)
                    raise
                self._settle(document, placeholder, written, answer_block(answer))
                logger.info("Answered document question ({} chars)", len(answer))
        except Exception as e:
            self._report("AI chat", e)

    async def test_connection(self):
        config = self._config_store.get()
        if not config.is_complete:
            self.notify(CONFIGURE_FIRST)
            return
        self.notify("Testing the connection to the AI model, please wait...")
        try:
            await self._llm_client.completion(
                config, [Message(role="user", content=CONNECTION_TEST_PROMPT)]
            )
        except Exception as e:
            logger.error("Connection test against {} failed: {}", config.endpoint, e)
            self.notify(
                f"❌ Connection failed!\n\nDetails: {e}\n\n"
                "Check your API endpoint, API key and network connection."
            )
            return
        logger.info("Connection test against {} succeeded", config.endpoint)
        self.notify("✅ Connected!\nThe API endpoint and key are both valid.")

    def notify(self, message: str, title: str = "AI Assistant"):
        self._context.show_modal(
            Modal(title=title, body=message, buttons=[ModalButton("OK")])
        )

    def _write(self, document: Document) -> str:
        text = document.render()
        self._context.set_editor_value(text)
        return text

    def _settle(
        self,
        document: Document,
        placeholder: Block,
        written: str,
        replacement: Block | None = None,
    ):
        current = self._context.get_editor_value()
        if current != written:
            # Edited while the request was pending, locate the marker again.
            document = Document.parse(current)
            found = document.find_placeholder(placeholder.placeholder)
            if found is None:
                logger.warning(
                    "`{}` marker is gone from the document",
                    placeholder.placeholder.name,
                )
                if replacement is None:
                    return
                document.append(replacement)
                self._write(document)
                return
            placeholder = found

        if replacement is None:
            document.remove(placeholder)
        else:
            document.replace(placeholder, replacement)
        self._write(document)

    def _report(self, action: str, error: Exception):
        if isinstance(error, (UserInputEmpty, OperationInProgress)):
            logger.info("{} skipped: {}", action, error)
            self.notify(str(error))
            return
        if isinstance(error, AssistantError):
            logger.error("{} failed: {}", action, error)
        else:
            logger.exception("{} failed", action)
        self.notify(f"{action} failed: {error}")

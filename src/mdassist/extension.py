from mdassist.assistant import Assistant
from mdassist.config import ConfigStore
from mdassist.host import EditorContext
from mdassist.llm_client import LLMClient


def activate(
    context: EditorContext,
    llm_client: LLMClient | None = None,
    config_store: ConfigStore | None = None,
) -> Assistant:
    assistant = Assistant(
        context=context,
        llm_client=llm_client or LLMClient(),
        config_store=config_store,
    )
    assistant.register()
    return assistant

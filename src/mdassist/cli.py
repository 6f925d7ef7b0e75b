import asyncio
import sys
from pathlib import Path

from loguru import logger
from prompt_toolkit import PromptSession
from rich.console import Console
from rich.panel import Panel

from mdassist.console import ConsoleHost
from mdassist.extension import activate
from mdassist.llm_client import LLMClient


def bootstrap(console: Console, text: str = "") -> tuple[ConsoleHost, LLMClient]:
    llm_client = LLMClient()
    host = ConsoleHost(console=console, prompt_session=PromptSession(), text=text)
    activate(host, llm_client=llm_client)
    return host, llm_client


async def run(host: ConsoleHost, llm_client: LLMClient):
    try:
        await host.start()
    finally:
        await llm_client.aclose()


def main():
    logger.remove()
    logger.add(sys.stderr, level="WARNING")

    console = Console()
    try:
        text = ""
        if len(sys.argv) > 1:
            text = Path(sys.argv[1]).read_text(encoding="utf-8")
        host, llm_client = bootstrap(console, text)
        asyncio.run(run(host, llm_client))
    except Exception as e:
        console.print(Panel.fit(str(e), border_style="red"))
        exit(1)


if __name__ == "__main__":
    main()

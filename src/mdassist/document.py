from dataclasses import dataclass, field
from enum import Enum, auto

from mdassist.prompts import ANSWER_PREFIX, CHAT_HEADING, QUESTION_PREFIX, RULE


class BlockKind(Enum):
    PROSE = auto()
    CHAT_HEADING = auto()
    QUESTION = auto()
    ANSWER = auto()
    RULE = auto()
    PLACEHOLDER = auto()


@dataclass(frozen=True)
class Placeholder:
    """Marker line written while a request is pending.

    `lead` is the separator inserted in front of `line`; a parsed placeholder
    block takes it back from the preceding text so removing the block
    restores the document as it was before the marker was appended.
    """

    name: str
    lead: str
    line: str

    @property
    def text(self) -> str:
        return self.lead + self.line


POLISHING = Placeholder(
    "polishing", "\n\n---\n\n", "[🤖 AI is polishing, please wait...]"
)
THINKING = Placeholder("thinking", "\n", f"{ANSWER_PREFIX} Thinking...")

PLACEHOLDERS = (POLISHING, THINKING)

# Blocks that absorb following plain lines.
_OPEN_KINDS = (BlockKind.PROSE, BlockKind.QUESTION, BlockKind.ANSWER)


@dataclass(eq=False)
class Block:
    kind: BlockKind
    text: str
    placeholder: Placeholder | None = None

    @property
    def body(self) -> str:
        content = self.text.strip()
        for prefix in (QUESTION_PREFIX, ANSWER_PREFIX):
            if self.kind != BlockKind.PROSE and content.startswith(prefix):
                content = content[len(prefix) :]
                break
        if self.kind == BlockKind.QUESTION:
            # An inline answer marker closes the question.
            content = content.split(ANSWER_PREFIX, 1)[0]
        return content.strip()


def _line_kind(line: str, in_chat: bool) -> tuple[BlockKind, Placeholder | None]:
    bare = line.rstrip("\r\n")
    for placeholder in PLACEHOLDERS:
        if bare == placeholder.line:
            return BlockKind.PLACEHOLDER, placeholder
    if not in_chat:
        if bare.strip() == CHAT_HEADING:
            return BlockKind.CHAT_HEADING, None
        return BlockKind.PROSE, None
    stripped = bare.lstrip()
    if stripped.startswith(QUESTION_PREFIX):
        return BlockKind.QUESTION, None
    if stripped.startswith(ANSWER_PREFIX):
        return BlockKind.ANSWER, None
    if bare.strip() == RULE:
        return BlockKind.RULE, None
    return BlockKind.PROSE, None


def _absorb_lead(blocks: list[Block], index: int):
    block = blocks[index]
    lead = block.placeholder.lead if block.placeholder else ""
    if not lead or not "".join(b.text for b in blocks[:index]).endswith(lead):
        return
    remaining = len(lead)
    i = index - 1
    while remaining:
        prev = blocks[i]
        take = min(remaining, len(prev.text))
        prev.text = prev.text[: len(prev.text) - take]
        remaining -= take
        i -= 1
    block.text = lead + block.text


@dataclass
class Document:
    blocks: list[Block] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "Document":
        blocks: list[Block] = []
        in_chat = False
        for line in text.splitlines(keepends=True):
            kind, placeholder = _line_kind(line, in_chat)
            if kind == BlockKind.CHAT_HEADING:
                in_chat = True
            current = blocks[-1] if blocks else None
            if kind == BlockKind.PROSE and current and current.kind in _OPEN_KINDS:
                current.text += line
            else:
                blocks.append(Block(kind, line, placeholder))

        for i, block in enumerate(blocks):
            if block.kind == BlockKind.PLACEHOLDER:
                _absorb_lead(blocks, i)
        return cls([b for b in blocks if b.text])

    def render(self) -> str:
        return "".join(b.text for b in self.blocks)

    @property
    def chat_heading(self) -> Block | None:
        return next(
            (b for b in self.blocks if b.kind == BlockKind.CHAT_HEADING), None
        )

    @property
    def context_text(self) -> str:
        """Text in front of the chat heading, or the whole document without one."""
        heading = self.chat_heading
        if heading is None:
            return self.render()
        index = self.blocks.index(heading)
        return "".join(b.text for b in self.blocks[:index])

    def questions(self) -> list[Block]:
        return [b for b in self.blocks if b.kind == BlockKind.QUESTION]

    def last_question(self) -> Block | None:
        questions = self.questions()
        return questions[-1] if questions else None

    def find_placeholder(self, placeholder: Placeholder) -> Block | None:
        return next((b for b in self.blocks if b.placeholder == placeholder), None)

    def append(self, block: Block) -> Block:
        self.blocks.append(block)
        return block

    def append_placeholder(self, placeholder: Placeholder) -> Block:
        return self.append(
            Block(BlockKind.PLACEHOLDER, placeholder.text, placeholder)
        )

    def remove(self, block: Block) -> bool:
        if block not in self.blocks:
            return False
        self.blocks.remove(block)
        return True

    def replace(self, old: Block, new: Block) -> bool:
        if old not in self.blocks:
            return False
        self.blocks[self.blocks.index(old)] = new
        return True


def answer_block(content: str) -> Block:
    return Block(BlockKind.ANSWER, f"\n{ANSWER_PREFIX} {content}\n")


def question_block(lead: str = "\n\n") -> Block:
    return Block(BlockKind.QUESTION, f"{lead}{QUESTION_PREFIX} ")


def chat_section() -> list[Block]:
    return [
        Block(BlockKind.PROSE, "\n\n---\n\n"),
        Block(BlockKind.CHAT_HEADING, f"{CHAT_HEADING}\n"),
        question_block("\n"),
    ]

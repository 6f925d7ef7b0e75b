DEFAULT_MODEL = "gpt-3.5-turbo"

MENU_ITEM_ID = "ai.assistant.main"
MENU_TITLE = "🤖 AI Assistant"

CHAT_HEADING = "### 🤖 AI Chat (about this document)"
QUESTION_PREFIX = "**You:**"
ANSWER_PREFIX = "**AI:**"
RULE = "---"

POLISH_SYSTEM_PROMPT = (
    "You are a professional text polishing assistant. You improve wording, "
    "fix grammar mistakes and make writing easier to read. Reply with the "
    "complete polished text only, without any explanation or preamble."
)
POLISH_USER_PROMPT = "Please polish the following text:\n\n{text}"

CHAT_SYSTEM_PROMPT = (
    "You are a question answering assistant for a given document. Answer the "
    "user's questions based on the document content below:\n\n---\n\n{document}"
)

CONNECTION_TEST_PROMPT = "Hello"

from enum import Enum


class NoteContentType(str, Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    RICH_TEXT = "rich_text"

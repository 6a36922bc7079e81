# panel_cmdline/command_line.py

import logging
from typing import Optional

from prompt_toolkit.buffer import Buffer
from prompt_toolkit.document import Document

from panel_cmdline.quoting import name_quote

logger = logging.getLogger(__name__)


class CommandLine:
    """
    Handle on the text of the input line.

    Wraps the prompt_toolkit Buffer owned by the UI so the interpreter can
    read, clear and insert text without knowing about widgets.
    """

    def __init__(self, buffer: Optional[Buffer] = None):
        self.buffer = buffer if buffer is not None else Buffer()

    @property
    def text(self) -> str:
        return self.buffer.text

    def assign_text(self, text: str):
        self.buffer.document = Document(text=text, cursor_position=len(text))

    def clean(self):
        """Empties the line. Accepted lines are already in history via validate_and_handle()."""
        self.buffer.reset()

    def insert(self, text: str, insert_extra_space: bool = False):
        self.buffer.insert_text(text + (' ' if insert_extra_space else ''))

    def insert_quoted(self, name: str, insert_extra_space: bool = False):
        """Inserts a file name quoted for the shell, with '%' doubled for placeholder expansion."""
        quoted = name_quote(name, quote_percent=True)
        logger.debug(f"Inserting quoted name '{quoted}' into command line")
        self.insert(quoted, insert_extra_space)

# panel_cmdline/format_codes.py

import os
import logging
from typing import List, Optional

from panel_cmdline.quoting import name_quote

logger = logging.getLogger(__name__)


class FormatExpander:
    """
    Expands single-character format codes against a panel.

      %f, %p   selected file          %d   current directory
      %x       extension              %n   name without extension
      %s       tagged files, or the selected file when nothing is tagged
      %t       tagged files           %%   a literal '%'

    Upper-case codes read the other panel. Unknown codes, and the empty
    code used for a trailing '%', expand to ''.
    """

    def __init__(self, quote: bool = True):
        self.quote = quote

    def _q(self, name: str) -> str:
        return name_quote(name, quote_percent=False) if self.quote else name

    def _selected(self, view) -> Optional[str]:
        return getattr(view, 'selected_file', None)

    def _tagged(self, view) -> List[str]:
        return list(getattr(view, 'tagged_files', None) or [])

    def __call__(self, view, code: str) -> str:
        return self.expand_format(view, code)

    def expand_format(self, view, code: str) -> str:
        if code == '%':
            return '%'
        if not code:
            return ''
        if code.isupper():
            view = getattr(view, 'other', None) if view is not None else None
            code = code.lower()
        if view is None:
            logger.debug(f"Format code '%{code}' has no panel to read from.")
            return ''

        selected = self._selected(view)
        if code == 'd':
            return self._q(view.cwd)
        if code in ('f', 'p'):
            return self._q(selected) if selected else ''
        if code == 'x':
            return os.path.splitext(selected)[1].lstrip('.') if selected else ''
        if code == 'n':
            return os.path.splitext(selected)[0] if selected else ''
        if code == 't':
            return ' '.join(self._q(name) for name in self._tagged(view))
        if code == 's':
            tagged = self._tagged(view)
            if tagged:
                return ' '.join(self._q(name) for name in tagged)
            return self._q(selected) if selected else ''
        logger.debug(f"Unknown format code '%{code}' expanded to nothing.")
        return ''

# panel_cmdline/placeholders.py

import logging
from typing import Callable

logger = logging.getLogger(__name__)

FormatFunc = Callable[[object, str], str]


def expand_placeholders(command: str, formatter: FormatFunc, context=None) -> str:
    """
    Replaces every '%<c>' in a command with formatter(context, c).

    Everything else is copied unchanged. A '%' at the very end is passed
    to the formatter as the empty code.
    """
    if '%' not in command:
        return command
    parts = []
    i = 0
    n = len(command)
    while i < n:
        ch = command[i]
        if ch == '%':
            code = command[i + 1:i + 2]
            parts.append(formatter(context, code))
            i += 2
        else:
            parts.append(ch)
            i += 1
    expanded = ''.join(parts)
    logger.debug(f"Expanded placeholders: '{command}' -> '{expanded}'")
    return expanded

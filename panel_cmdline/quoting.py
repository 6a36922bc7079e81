# panel_cmdline/quoting.py

# Characters the shell would interpret; each gets a backslash in front.
SHELL_SPECIAL_CHARS = frozenset("'\\\r\n\t\"; ?|[]{}<>`!$&*()")

# Only special when they open a word.
LEADING_SPECIAL_CHARS = frozenset("~#")


def name_quote(name: str, quote_percent: bool = True) -> str:
    """
    Quotes a file name so it can be pasted into the command line verbatim.

    A leading '-' gets a './' prefix so the name is not taken for an option.
    With quote_percent, '%' is doubled so placeholder expansion turns it back
    into a single '%'.
    """
    parts = []
    if name.startswith('-'):
        parts.append('./')
    for ch in name:
        if ch == '%':
            if quote_percent:
                parts.append('%')
        elif ch in SHELL_SPECIAL_CHARS:
            parts.append('\\')
        elif ch in LEADING_SPECIAL_CHARS and not parts:
            parts.append('\\')
        parts.append(ch)
    return ''.join(parts)

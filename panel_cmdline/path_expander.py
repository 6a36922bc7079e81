# panel_cmdline/path_expander.py

import os
import logging
from typing import Mapping, Optional

from panel_cmdline.errors import ExpansionOverflow

logger = logging.getLogger(__name__)

DEFAULT_MAX_PATH_LENGTH = 4096
PATH_SEP = '/'

_UNESCAPE_CONTROL = {'n': '\n', 't': '\t'}
_UNESCAPE_LITERAL = frozenset(" \t*?[]{}()<>!$&;|#~\\`\"'%")


def shell_unescape(text: str) -> str:
    """Drops the backslash in front of shell-special characters, e.g. 'My\\ Docs' -> 'My Docs'."""
    if '\\' not in text:
        return text
    out = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '\\' and i + 1 < n:
            nxt = text[i + 1]
            if nxt in _UNESCAPE_CONTROL:
                out.append(_UNESCAPE_CONTROL[nxt])
                i += 2
                continue
            if nxt in _UNESCAPE_LITERAL:
                out.append(nxt)
                i += 2
                continue
        out.append(ch)
        i += 1
    return ''.join(out)


class PathExpander:
    """
    Expands the operand of the built-in 'cd': tilde expansion first, then
    $VAR / ${VAR} substitution from the environment.

    There is no quoting, no ${VAR:-default} and no command substitution;
    '$(' and '$[' are copied through untouched.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None,
                 max_length: int = DEFAULT_MAX_PATH_LENGTH, strict: bool = False):
        self.environ = environ if environ is not None else os.environ
        self.max_length = max_length
        self.strict = strict

    def expand_tilde(self, path: str) -> str:
        if not path.startswith('~'):
            return path
        if path == '~' or path.startswith('~' + PATH_SEP):
            home = self.environ.get('HOME')
            if home is not None:
                return home + path[1:]
        # '~user' form, or no HOME in the mapping: let the password database decide.
        return os.path.expanduser(path)

    def expand_variables(self, path: str) -> str:
        limit = self.max_length
        out = []
        written = 0
        i = 0
        n = len(path)
        while i < n and written < limit:
            ch = path[i]
            if ch != '$' or path[i + 1:i + 2] in ('[', '('):
                out.append(ch)
                written += 1
                i += 1
                continue

            i += 1
            braced = path[i:i + 1] == '{'
            end = -1
            if braced:
                i += 1
                end = path.find('}', i)
            if end == -1:
                end = path.find(PATH_SEP, i)
            if end == -1:
                end = n

            value = self.environ.get(path[i:end])
            if value is None:
                # Undefined: put the '$' (and '{') back; the name is copied as plain text.
                out.append('${' if braced else '$')
                written += len(out[-1])
                continue

            if written + len(value) < limit:
                out.append(value)
                written += len(value)
            elif self.strict:
                raise ExpansionOverflow(limit)
            else:
                logger.debug(f"Dropped value of '{path[i:end]}': expansion would exceed {limit} characters.")
            i = end + 1 if path[end:end + 1] == '}' else end

        if i < n and self.strict:
            raise ExpansionOverflow(limit)
        result = ''.join(out)
        if len(result) > limit:
            if self.strict:
                raise ExpansionOverflow(limit)
            result = result[:limit]
        return result

    def expand(self, raw: str) -> str:
        """Returns the fully expanded form of a cd operand."""
        expanded = self.expand_variables(self.expand_tilde(raw))
        if expanded != raw:
            logger.debug(f"Expanded cd operand: '{raw}' -> '{expanded}'")
        return expanded

# panel_cmdline/search_path.py

import os
import logging
from typing import List, Mapping, Optional

from panel_cmdline.errors import DirectoryNotFound
from panel_cmdline.path_expander import PATH_SEP
from panel_cmdline.vfs_paths import strip_password

logger = logging.getLogger(__name__)


def concat_dir_and_file(directory: str, name: str) -> str:
    """Joins with exactly the separator the directory is missing."""
    if directory.endswith(PATH_SEP):
        return directory + name
    return directory + PATH_SEP + name


def split_search_path(value: Optional[str]) -> List[str]:
    """Splits a CDPATH-style value on ':' keeping order and dropping empty entries."""
    if not value:
        return []
    return [entry for entry in value.split(':') if entry]


class SearchPathResolver:
    """Tries a cd target directly, then relative to every CDPATH entry."""

    def __init__(self, changer, environ: Optional[Mapping[str, str]] = None, variable: str = "CDPATH"):
        self.changer = changer
        self.environ = environ if environ is not None else os.environ
        self.variable = variable

    def candidates(self, expanded: str) -> List[str]:
        # Read on every call so changes to the environment apply immediately.
        return [concat_dir_and_file(entry, expanded)
                for entry in split_search_path(self.environ.get(self.variable))]

    def resolve(self, expanded: str, requested: str) -> str:
        """
        Changes into the first directory that works and returns it.

        Raises:
            DirectoryNotFound: With the redacted 'requested' path and the
                               collaborator's last error text.
        """
        if self.changer.try_change_directory(expanded):
            return expanded
        if not expanded.startswith(PATH_SEP):
            for candidate in self.candidates(expanded):
                logger.debug(f"Trying {self.variable} candidate '{candidate}'")
                if self.changer.try_change_directory(candidate):
                    logger.info(f"Resolved '{expanded}' via {self.variable} to '{candidate}'")
                    return candidate
        reason = getattr(self.changer, 'last_error', '') or ''
        raise DirectoryNotFound(strip_password(requested), reason)

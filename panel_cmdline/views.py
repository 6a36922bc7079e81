# panel_cmdline/views.py

import os
import errno
import logging
from enum import Enum, auto
from typing import List, Optional

from panel_cmdline.vfs_paths import is_local_path

logger = logging.getLogger(__name__)

class ViewMode(Enum):
    """How the active panel presents directories."""
    PANEL = auto()              # Flat file listing, cd goes through the shell-like resolver
    TREE = auto()               # Directory tree, cd moves the tree cursor


class PanelView:
    """
    A flat listing of one local directory.

    Acts as the directory-change collaborator for the cd built-in and as the
    context for %-placeholders (selected file, tagged files, other panel).
    """
    mode = ViewMode.PANEL

    def __init__(self, cwd: Optional[str] = None, home_dir: Optional[str] = None):
        self.cwd = cwd or os.getcwd()
        self.home_dir = home_dir or os.path.expanduser("~")
        self.last_error = ""
        self.selected_file: Optional[str] = None
        self.tagged_files: List[str] = []
        self.other: Optional["PanelView"] = None

    @property
    def is_local(self) -> bool:
        return is_local_path(self.cwd)

    def try_change_directory(self, path: str) -> bool:
        """Enters 'path' (relative to the panel's cwd; empty means home). Sets last_error on failure."""
        target = path or self.home_dir
        if not os.path.isabs(target):
            target = os.path.join(self.cwd, target)
        target = os.path.normpath(target)

        if not os.path.exists(target):
            self.last_error = os.strerror(errno.ENOENT)
        elif not os.path.isdir(target):
            self.last_error = os.strerror(errno.ENOTDIR)
        elif not os.access(target, os.X_OK):
            self.last_error = os.strerror(errno.EACCES)
        else:
            self.cwd = target
            self.selected_file = None
            self.tagged_files = []
            self.last_error = ""
            logger.info(f"Directory changed to: {self.cwd}")
            return True

        logger.warning(f"Failed cd to '{target}': {self.last_error}")
        return False

    def list_entries(self) -> List[str]:
        """Names in the panel's directory, sorted; empty when it cannot be read."""
        try:
            return sorted(os.listdir(self.cwd))
        except OSError as e:
            logger.warning(f"Cannot list '{self.cwd}': {e}")
            return []

    def move_selection(self, step: int = 1) -> Optional[str]:
        """Moves the cursor 'step' entries, wrapping around, and returns the selected name."""
        entries = self.list_entries()
        if not entries:
            self.selected_file = None
        elif self.selected_file in entries:
            index = (entries.index(self.selected_file) + step) % len(entries)
            self.selected_file = entries[index]
        else:
            self.selected_file = entries[0] if step >= 0 else entries[-1]
        return self.selected_file

    def toggle_tag(self, name: Optional[str] = None) -> bool:
        """Tags or untags 'name' (default: the selection). Returns True if it is now tagged."""
        name = name or self.selected_file
        if not name:
            return False
        if name in self.tagged_files:
            self.tagged_files.remove(name)
            return False
        self.tagged_files.append(name)
        return True


class TreeView:
    """A directory tree; its cwd is whatever directory the tree cursor was last synced to."""
    mode = ViewMode.TREE

    def __init__(self, cwd: Optional[str] = None):
        self.cwd = cwd or os.getcwd()
        self.selected_file: Optional[str] = None
        self.tagged_files: List[str] = []
        self.other = None

    @property
    def is_local(self) -> bool:
        return is_local_path(self.cwd)

    def sync_tree(self, path: str):
        logger.info(f"Tree synced to: {path}")
        self.cwd = path

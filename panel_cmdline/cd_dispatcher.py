# panel_cmdline/cd_dispatcher.py

import os
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from panel_cmdline.config_handler import get_nested_config
from panel_cmdline.errors import DirectoryNotFound, ExpansionOverflow
from panel_cmdline.path_expander import PATH_SEP, DEFAULT_MAX_PATH_LENGTH, PathExpander, shell_unescape
from panel_cmdline.search_path import SearchPathResolver, concat_dir_and_file
from panel_cmdline.views import ViewMode
from panel_cmdline.vfs_paths import strip_password

logger = logging.getLogger(__name__)

CD_OPERAND_OFFSET = 3


def extract_cd_operand(command_text: str) -> str:
    """
    Returns the operand of a 'cd' command line.

    Trailing blanks are dropped (so 'cd fred ' means 'fred'), the three
    characters of 'cd ' are skipped and so is any further run of spaces
    or tabs. A bare 'cd' yields ''.
    """
    cmd = command_text.rstrip(' \t\n')
    if len(cmd) < CD_OPERAND_OFFSET:
        cmd = "cd "
    pos = CD_OPERAND_OFFSET
    while pos < len(cmd) and cmd[pos] in ' \t':
        pos += 1
    return cmd[pos:]


def parent_directory(cwd: str) -> str:
    """Strips the last '/'-delimited component; the root when nothing is left."""
    idx = cwd.rfind(PATH_SEP)
    return cwd[:idx] if idx > 0 else PATH_SEP


class DirectoryChangeDispatcher:
    """Runs the built-in cd against whichever view (tree or panel) is active."""

    def __init__(self, config: Dict[str, Any], append_output: Callable[..., None],
                 environ: Optional[Mapping[str, str]] = None):
        self.config = config
        self.append_output = append_output
        self.environ = environ if environ is not None else os.environ
        self.cdpath_variable = get_nested_config(config, 'paths.cdpath_variable', 'CDPATH')
        self.expander = PathExpander(
            environ=self.environ,
            max_length=get_nested_config(config, 'paths.max_path_length', DEFAULT_MAX_PATH_LENGTH),
            strict=get_nested_config(config, 'behavior.strict_path_expansion', False),
        )

    def home_dir(self) -> str:
        configured = get_nested_config(self.config, 'paths.home_dir')
        if configured:
            return os.path.expanduser(configured)
        return self.environ.get('HOME') or os.path.expanduser("~")

    def do_cd_command(self, command_text: str, view) -> bool:
        """Executes a full 'cd ...' line. Returns True if the directory changed."""
        operand = extract_cd_operand(command_text)
        logger.info(f"cd requested with operand '{strip_password(operand)}' in {view.mode.name} view")
        if view.mode is ViewMode.TREE:
            self._tree_cd(operand, view)
            return True
        return self._panel_cd(operand, view)

    def _tree_cd(self, operand: str, view):
        if not operand:
            view.sync_tree(self.home_dir())
        elif operand == "..":
            view.sync_tree(parent_directory(view.cwd))
        elif operand.startswith(PATH_SEP):
            view.sync_tree(operand)
        else:
            view.sync_tree(concat_dir_and_file(view.cwd, operand))

    def _panel_cd(self, operand: str, view) -> bool:
        resolver = SearchPathResolver(view, environ=self.environ, variable=self.cdpath_variable)
        try:
            expanded = self.expander.expand(shell_unescape(operand))
            resolver.resolve(expanded, operand)
            return True
        except DirectoryNotFound as e:
            self.append_output(f"Cannot chdir to \"{e.path}\"\n{e.reason}", style_class='error')
            logger.warning(f"cd failed for '{e.path}': {e.reason}")
        except ExpansionOverflow as e:
            self.append_output(f"Cannot chdir to \"{strip_password(operand)}\"\n{e}", style_class='error')
            logger.warning(f"cd operand expansion overflow: {e}")
        return False

# --- API DOCUMENTATION for panel_cmdline/command_interpreter.py ---
#
# **Purpose:** Decides what a submitted command line means (built-in cd,
# exit, or a generic shell command) and hands it to the right collaborator.
#
# **Public Classes:**
#
# class CommandLineInterpreter:
#     """Classifies and dispatches one line of input."""
#
#     def __init__(self, config, ui_manager, dispatcher, executor, formatter):
#         """
#         Args:
#             config (dict): The application configuration.
#             ui_manager: Provides append_output(), update_input_prompt() and
#                         the async confirm_quit().
#             dispatcher (DirectoryChangeDispatcher): Runs the cd built-in.
#             executor (ShellExecutor): Runs generic commands.
#             formatter (callable): formatter(view, code) -> str for %-codes.
#         """
#
#     async def enter(self, command_line, view) -> bool:
#         """
#         Handles Enter on the command line.
#
#         Returns:
#             bool: False when the line was refused (remote filesystem, busy
#                   shell) or an exit was declined, True otherwise.
#         """
#
# --- END API DOCUMENTATION ---
import logging

from panel_cmdline.config_handler import get_nested_config
from panel_cmdline.errors import ShellBusy, UnsupportedRemoteExecution
from panel_cmdline.placeholders import expand_placeholders

logger = logging.getLogger(__name__)

_LEADING_BLANKS = ' \t\n'


def is_cd_command(text: str) -> bool:
    return text.startswith("cd ") or text == "cd"


class CommandLineInterpreter:
    def __init__(self, config, ui_manager, dispatcher, executor, formatter):
        self.config = config
        self.ui_manager = ui_manager
        self.dispatcher = dispatcher
        self.executor = executor
        self.formatter = formatter

    def _check_can_execute(self, view):
        if not view.is_local:
            raise UnsupportedRemoteExecution()
        # Checked before the line is cleared so the user keeps what they typed.
        if self.executor.uses_subshell and self.executor.is_busy:
            raise ShellBusy()

    async def enter(self, command_line, view) -> bool:
        if not get_nested_config(self.config, 'ui.command_prompt', True):
            return True

        cmd = command_line.text.lstrip(_LEADING_BLANKS)
        if not cmd:
            return True
        logger.info(f"CommandLineInterpreter.enter received: '{cmd}'")

        if is_cd_command(cmd):
            self.dispatcher.do_cd_command(cmd, view)
            command_line.clean()
            self.ui_manager.update_input_prompt(view.cwd)
            return True

        if cmd == "exit":
            command_line.assign_text("")
            if not await self.ui_manager.confirm_quit():
                logger.info("Exit declined.")
                return False
            return True

        try:
            self._check_can_execute(view)
        except (UnsupportedRemoteExecution, ShellBusy) as e:
            self.ui_manager.append_output(f"❌ {e}", style_class='error')
            logger.warning(f"Refused to execute '{cmd}': {e}")
            return False

        command = expand_placeholders(cmd, self.formatter, view)
        command_line.clean()
        await self.executor.execute(command, view.cwd)

        if self.executor.uses_subshell:
            if self.executor.subshell_exited:
                if await self.ui_manager.confirm_quit():
                    return True
                logger.info("Restarting subshell.")
                await self.executor.restart()
            self.ui_manager.update_input_prompt(view.cwd)
        return True

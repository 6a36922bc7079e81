# main.py

from prompt_toolkit import Application
from prompt_toolkit.history import FileHistory

import asyncio
import os
import logging
import datetime

from panel_cmdline.config_handler import load_configuration, get_nested_config
from panel_cmdline.cd_dispatcher import DirectoryChangeDispatcher
from panel_cmdline.command_interpreter import CommandLineInterpreter
from panel_cmdline.format_codes import FormatExpander
from panel_cmdline.shell_executor import ShellExecutor
from panel_cmdline.ui_manager import UIManager
from panel_cmdline.views import PanelView, TreeView, ViewMode

config = load_configuration()

LOG_FILE = os.path.expanduser(get_nested_config(config, 'paths.log_file', '~/.cache/panel-cmdline/panel_cmdline.log'))
HISTORY_FILE_PATH = os.path.expanduser(get_nested_config(config, 'paths.history_file', '~/.cache/panel-cmdline/history'))
os.makedirs(os.path.dirname(LOG_FILE), exist_ok=True)
os.makedirs(os.path.dirname(HISTORY_FILE_PATH), exist_ok=True)

# Logging configuration
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
    handlers=[logging.FileHandler(LOG_FILE)]
)
logger = logging.getLogger(__name__)

ui_manager_instance = None
interpreter_instance = None
executor_instance = None
panel_view = None
tree_view = None
active_view = None


def normal_input_accept_handler(buff):
    """
    Accept handler of the input field. Hands the line to the interpreter on
    the event loop and keeps the text: the interpreter decides when to clear it.
    """
    logger.info(f"normal_input_accept_handler received: '{buff.text}'")

    async def _handle_input():
        try:
            handled = await interpreter_instance.enter(ui_manager_instance.command_line, active_view)
            logger.debug(f"Interpreter returned handled={handled}")
        except Exception as e:
            ui_manager_instance.append_output(f"❌ Unexpected error: {e}", style_class='error')
            logger.exception("Unhandled error while interpreting the command line")
        finally:
            refresh_status_bar()

    asyncio.create_task(_handle_input())
    return True


def restore_normal_input_handler():
    """Re-attaches the normal accept handler after a flow (e.g. quit confirmation) ends."""
    if ui_manager_instance and active_view:
        ui_manager_instance.set_normal_input_mode(normal_input_accept_handler, active_view.cwd)


def refresh_status_bar():
    if ui_manager_instance and active_view:
        status = f" {active_view.mode.name.lower()} view: {active_view.cwd}"
        if active_view.mode is ViewMode.PANEL:
            if active_view.selected_file:
                status += f" | selected: {active_view.selected_file}"
            if active_view.tagged_files:
                status += f" | tagged: {len(active_view.tagged_files)}"
        ui_manager_instance.update_status_bar(status)


def get_active_view():
    return active_view


def swap_panels():
    """Makes the other panel the active one (upper-case %-codes then refer back to this one)."""
    global active_view, panel_view
    if active_view.mode is not ViewMode.PANEL or panel_view.other is None:
        return
    panel_view = panel_view.other
    active_view = panel_view
    logger.info(f"Switched to the other panel at '{active_view.cwd}'")
    ui_manager_instance.update_input_prompt(active_view.cwd)
    refresh_status_bar()


def toggle_view():
    """Switches between the panel and the tree view, carrying the directory across."""
    global active_view
    if active_view.mode is ViewMode.PANEL:
        tree_view.sync_tree(panel_view.cwd)
        active_view = tree_view
    else:
        if not panel_view.try_change_directory(tree_view.cwd):
            ui_manager_instance.append_output(f"Cannot chdir to \"{tree_view.cwd}\"\n{panel_view.last_error}", style_class='error')
        active_view = panel_view
    logger.info(f"Switched to {active_view.mode.name} view at '{active_view.cwd}'")
    ui_manager_instance.update_input_prompt(active_view.cwd)
    refresh_status_bar()


async def main_async_runner():
    """ Main asynchronous runner for the application. """
    global ui_manager_instance, interpreter_instance, executor_instance, panel_view, tree_view, active_view

    ui_manager_instance = UIManager(config)
    ui_manager_instance.main_restore_normal_input_ref = restore_normal_input_handler
    ui_manager_instance.main_toggle_view_ref = toggle_view
    ui_manager_instance.main_swap_panels_ref = swap_panels
    ui_manager_instance.main_view_changed_ref = refresh_status_bar
    ui_manager_instance.active_view_provider = get_active_view

    home_dir = get_nested_config(config, 'paths.home_dir')
    home_dir = os.path.expanduser(home_dir) if home_dir else None
    panel_view = PanelView(os.getcwd(), home_dir=home_dir)
    panel_view.other = PanelView(os.getcwd(), home_dir=home_dir)
    panel_view.other.other = panel_view
    tree_view = TreeView(panel_view.cwd)
    active_view = tree_view if get_nested_config(config, 'ui.start_in_tree_view', False) else panel_view

    executor_instance = ShellExecutor(
        ui_manager_instance.append_output,
        shell=get_nested_config(config, 'behavior.shell', '/bin/bash'),
        use_subshell=get_nested_config(config, 'behavior.use_subshell', True),
    )
    if executor_instance.uses_subshell:
        await executor_instance.start()

    interpreter_instance = CommandLineInterpreter(
        config,
        ui_manager_instance,
        DirectoryChangeDispatcher(config, ui_manager_instance.append_output),
        executor_instance,
        FormatExpander(),
    )

    welcome_message = (
        "Welcome to panel-cmdline 🚀\n"
        "Type 'cd <dir>' to change directory (~, $VAR and CDPATH are understood),\n"
        "'exit' to quit, or any shell command (%d, %f, %s... are expanded).\n"
        "Alt+N/Alt+P select a file, Alt+T tags it, Alt+Enter inserts it, Tab switches panels.\n"
    )
    layout = ui_manager_instance.initialize_ui_elements(
        initial_prompt_text=f"({ui_manager_instance.format_prompt_dir(active_view.cwd)}) > ",
        history=FileHistory(HISTORY_FILE_PATH),
        output_buffer_main=[('class:welcome', welcome_message)]
    )
    ui_manager_instance.input_field.buffer.accept_handler = normal_input_accept_handler
    refresh_status_bar()

    app_instance = Application(
        layout=layout,
        key_bindings=ui_manager_instance.get_key_bindings(),
        style=ui_manager_instance.style,
        full_screen=True,
        mouse_support=get_nested_config(config, 'ui.enable_mouse_support', False)
    )
    ui_manager_instance.app = app_instance

    logger.info("panel-cmdline application starting.")
    try:
        await app_instance.run_async()
    finally:
        await executor_instance.close()
    logger.info("panel-cmdline application run_async completed.")


def run_shell():
    """ Main entry point to run the application. """
    logger.info("=" * 80)
    logger.info("  panel-cmdline Session Started")
    logger.info(f"  Timestamp: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info("=" * 80)
    try:
        asyncio.run(main_async_runner())
    except (EOFError, KeyboardInterrupt):
        print("\nExiting panel-cmdline. 👋"); logger.info("Exiting due to EOF or KeyboardInterrupt at run_shell level.")
    except Exception as e:
        print(f"\nUnexpected critical error: {e}"); logger.critical("Critical error in run_shell or main_async_runner", exc_info=True)
    finally:
        logger.info("=" * 80)
        logger.info("  panel-cmdline Session Ended")
        logger.info(f"  Timestamp: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        logger.info("=" * 80)
        logging.shutdown()

if __name__ == "__main__":
    run_shell()

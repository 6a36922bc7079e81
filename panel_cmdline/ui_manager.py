# panel_cmdline/ui_manager.py
import asyncio
import logging
import os

from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Window, Layout
from prompt_toolkit.widgets import TextArea
from prompt_toolkit.styles import Style
from prompt_toolkit.document import Document
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.history import History

from panel_cmdline.command_line import CommandLine
from panel_cmdline.config_handler import get_nested_config
from panel_cmdline.views import ViewMode

logger = logging.getLogger(__name__)

class UIManager:
    """The prompt_toolkit front end: output pane, status bar and the command line.

    Besides drawing, it is the interpreter's output sink and quit-confirmation
    collaborator. The Application itself is created by main.py and stored
    in `self.app`.
    """
    def __init__(self, config: dict):
        self.config = config
        self.app = None
        self.output_field = None
        self.input_field = None
        self.status_bar = None
        self.layout = None
        self.style = None
        self.output_buffer = []
        self.max_output_buffer_lines = get_nested_config(config, 'ui.max_output_buffer_lines', 500)

        self.confirmation_flow_active = False
        self.confirmation_flow_state = {}

        self.current_prompt_text = ""
        self.status_bar_control = FormattedTextControl("")

        self.main_restore_normal_input_ref = None
        self.main_toggle_view_ref = None
        self.main_swap_panels_ref = None
        self.main_view_changed_ref = None
        self.active_view_provider = None

        self.vi_style = get_nested_config(config, 'ui.vi_style', False)
        self.vi_skip = self.vi_style

        self.kb = KeyBindings()
        self._register_keybindings()
        logger.debug("UIManager initialized with config and keybindings.")

    def _register_keybindings(self):
        # With ui.vi_style the line ignores typing until ':' is pressed.
        vi_skip_active = Condition(lambda: self.vi_skip and not self.confirmation_flow_active)

        @self.kb.add('c-c')
        @self.kb.add('c-d')
        def _handle_exit(event):
            logger.info("Exit keybinding triggered.")
            event.app.exit()

        @self.kb.add('escape')
        def _handle_cancel(event):
            if self.confirmation_flow_active:
                self.append_output("\n⚠️ Quit cancelled.", style_class='warning')
                future = self.confirmation_flow_state.get('future')
                if future and not future.done():
                    future.set_result(False)
                event.app.invalidate()

        @self.kb.add('enter', filter=~vi_skip_active)
        def _handle_enter(event):
            if self.vi_style and not self.confirmation_flow_active:
                self.vi_skip = True
            event.current_buffer.validate_and_handle()

        @self.kb.add(':', filter=vi_skip_active)
        def _handle_vi_activate(event):
            logger.debug("vi-style command line activated.")
            self.vi_skip = False
            event.app.invalidate()

        @self.kb.add('j', filter=vi_skip_active)
        def _handle_vi_down(event):
            self.select_entry(1)

        @self.kb.add('k', filter=vi_skip_active)
        def _handle_vi_up(event):
            self.select_entry(-1)

        @self.kb.add('t', filter=vi_skip_active)
        def _handle_vi_tag(event):
            self.toggle_tag()

        @self.kb.add('<any>', filter=vi_skip_active)
        def _handle_vi_skipped_key(event):
            pass

        @self.kb.add('c-t')
        def _handle_toggle_view(event):
            if self.main_toggle_view_ref and not self.confirmation_flow_active:
                self.main_toggle_view_ref()

        @self.kb.add('tab')
        def _handle_swap_panels(event):
            if self.main_swap_panels_ref and not self.confirmation_flow_active:
                self.main_swap_panels_ref()

        @self.kb.add('escape', 'n')
        def _handle_select_next(event):
            self.select_entry(1)

        @self.kb.add('escape', 'p')
        def _handle_select_previous(event):
            self.select_entry(-1)

        @self.kb.add('escape', 't')
        def _handle_tag(event):
            self.toggle_tag()

        @self.kb.add('escape', 'enter')
        def _handle_insert_selected(event):
            self.insert_selected_name()

        @self.kb.add('escape', 'a')
        def _handle_insert_cwd(event):
            self.insert_current_dir()

        @self.kb.add('c-x', 't')
        def _handle_insert_tagged(event):
            self.insert_tagged_names()

        @self.kb.add('pageup')
        def _handle_pageup(event):
            if self.output_field and self.output_field.window.render_info:
                self.output_field.window._scroll_up()
                event.app.invalidate()

        @self.kb.add('pagedown')
        def _handle_pagedown(event):
            if self.output_field and self.output_field.window.render_info:
                self.output_field.window._scroll_down()
                event.app.invalidate()

        logger.debug("UIManager: Keybindings registered.")

    def get_key_bindings(self) -> KeyBindings:
        return self.kb

    @property
    def command_line(self) -> CommandLine:
        """The input line as a handle the interpreter can read and clear."""
        return CommandLine(self.input_field.buffer)

    # --- Panel actions ---
    def _active_view(self):
        return self.active_view_provider() if self.active_view_provider else None

    def _active_panel(self):
        view = self._active_view()
        if view is None or view.mode is not ViewMode.PANEL or self.confirmation_flow_active:
            return None
        return view

    def _view_changed(self):
        if self.main_view_changed_ref:
            self.main_view_changed_ref()

    def select_entry(self, step: int):
        """Moves the active panel's selection by 'step' entries."""
        panel = self._active_panel()
        if panel is None:
            return
        panel.move_selection(step)
        self._view_changed()

    def toggle_tag(self):
        panel = self._active_panel()
        if panel is None:
            return
        panel.toggle_tag()
        self._view_changed()

    def insert_selected_name(self):
        """Puts the selected name, quoted for the shell, into the command line."""
        panel = self._active_panel()
        if panel and panel.selected_file:
            self.command_line.insert_quoted(panel.selected_file, insert_extra_space=True)

    def insert_tagged_names(self):
        panel = self._active_panel()
        if panel:
            for name in panel.tagged_files:
                self.command_line.insert_quoted(name, insert_extra_space=True)

    def insert_current_dir(self):
        view = self._active_view()
        if view is not None and not self.confirmation_flow_active:
            self.command_line.insert_quoted(view.cwd, insert_extra_space=True)

    def exit(self):
        """Tells the prompt_toolkit application to exit gracefully."""
        if self.app and hasattr(self.app, 'exit'):
            logger.info("UIManager: Calling app.exit() to terminate prompt_toolkit loop.")
            self.app.exit()
        else:
            logger.warning("UIManager: exit() called, but self.app is not set or has no exit method.")

    # --- Quit Confirmation Flow ---
    async def confirm_quit(self) -> bool:
        """Asks whether to leave (unless behavior.confirm_exit is off) and exits on yes."""
        if not get_nested_config(self.config, 'behavior.confirm_exit', True):
            self.exit()
            return True

        logger.info("UIManager: Starting quit confirmation.")
        self.confirmation_flow_active = True
        self.confirmation_flow_state = {'future': asyncio.Future()}
        self.append_output("Do you really want to quit?", style_class='warning')
        self.set_flow_input_mode(
            prompt_text="[Quit] (yes/no): ",
            accept_handler_func=self._handle_quit_confirmation_response
        )
        try:
            confirmed = await self.confirmation_flow_state['future']
            logger.info(f"UIManager: Quit confirmation resolved with: {confirmed}")
        finally:
            self.confirmation_flow_active = False
            if self.main_restore_normal_input_ref:
                self.main_restore_normal_input_ref()
        if confirmed:
            self.exit()
        return confirmed

    def _handle_quit_confirmation_response(self, buff):
        response = buff.text.strip().lower()
        future = self.confirmation_flow_state.get('future')
        if not future or future.done():
            return

        if response in ['y', 'yes']:
            future.set_result(True)
        elif response in ['n', 'no']:
            future.set_result(False)
        else:
            self.append_output("Invalid choice. Please enter 'yes' or 'no'.", style_class='error')

    def initialize_ui_elements(self, initial_prompt_text: str, history: History, output_buffer_main: list) -> Layout:
        """Creates the prompt_toolkit widgets and returns the application layout.

        Args:
            initial_prompt_text: The text for the very first input prompt.
            history: The history object for the input field.
            output_buffer_main: A list of (style, text) tuples for initial output.
        """
        logger.info("UIManager: Initializing UI elements...")
        key_help_text_content = ("Enter: Submit | Tab: Other panel | Alt+N/P: Select | Alt+T: Tag | "
                                 "Alt+Enter: Insert name | Ctrl+T: Tree/Panel | Ctrl+C/D: Exit")
        if self.vi_style:
            key_help_text_content = ":: Command line | j/k: Select | t: Tag | " + key_help_text_content
        self.style = Style.from_dict({
            'output-field': 'bg:#282c34 #abb2bf', 'input-field': 'bg:#21252b #d19a66',
            'key-help': 'bg:#282c34 #5c6370', 'line': '#3e4451',
            'status-bar': 'bg:#282c34 #abb2bf',
            'welcome': 'bold #86c07c', 'info': '#61afef',
            'success': '#98c379', 'error': '#e06c75',
            'warning': '#d19a66', 'executing': 'bold #61afef',
        })
        self.output_buffer = list(output_buffer_main)

        self.output_field = TextArea(
            text="".join([text_content for _, text_content in self.output_buffer]),
            style='class:output-field', scrollbar=True, focusable=False,
            wrap_lines=True, read_only=True
        )
        self.current_prompt_text = initial_prompt_text
        self.input_field = TextArea(
            prompt=self._get_current_prompt,
            style='class:input-field',
            multiline=False, wrap_lines=False, history=history, height=1
        )
        self.key_help_field = Window(
            content=FormattedTextControl(key_help_text_content),
            height=1, style='class:key-help'
        )
        self.status_bar = Window(content=self.status_bar_control, height=1, style='class:status-bar')
        self.layout = Layout(HSplit([
            self.output_field,
            self.status_bar,
            Window(height=1, char='─', style='class:line'),
            self.input_field,
            self.key_help_field
        ]), focused_element=self.input_field)
        logger.info("UIManager: UI elements fully initialized.")
        return self.layout

    def _get_current_prompt(self) -> str:
        return self.current_prompt_text

    def update_status_bar(self, text: str):
        self.status_bar_control.text = text
        if self.app:
            self.app.invalidate()

    def append_output(self, text: str, style_class: str = 'default'):
        """The primary method for adding text to the main output field."""
        logger.info(f"UI_OUTPUT: {text.rstrip()}")
        if not text.endswith('\n'): text += '\n'
        self.output_buffer.append((style_class, text))

        if len(self.output_buffer) > self.max_output_buffer_lines:
            lines_to_remove = len(self.output_buffer) - self.max_output_buffer_lines + (self.max_output_buffer_lines // 10)
            self.output_buffer = self.output_buffer[lines_to_remove:]
            logger.debug(f"Output buffer trimmed. New size: {len(self.output_buffer)} lines.")

        if not self.output_field:
            return
        plain_text_output = "".join([content for _, content in self.output_buffer])
        self.output_field.buffer.set_document(
            Document(plain_text_output, cursor_position=len(plain_text_output)), bypass_readonly=True
        )
        if self.app and getattr(self.app, 'is_running', False):
            self.app.invalidate()

    def format_prompt_dir(self, current_directory_path: str) -> str:
        """Shortens a directory for the prompt: '~' for home, '~/...tail' or '...tail' when too long."""
        home_dir = os.path.expanduser("~")
        max_prompt_len = get_nested_config(self.config, 'ui.max_prompt_length', 30)
        if current_directory_path == home_dir:
            return "~"
        if current_directory_path.startswith(home_dir + os.sep):
            relative_path = current_directory_path[len(home_dir) + 1:]
            full_rel_prompt = "~/" + relative_path
            if len(full_rel_prompt) <= max_prompt_len:
                return full_rel_prompt
            chars_to_keep_at_end = max_prompt_len - (len("~/") + 3)
            return "~/..." + relative_path[-chars_to_keep_at_end:] if chars_to_keep_at_end > 0 else "~/..."
        if len(current_directory_path) <= max_prompt_len:
            return current_directory_path
        chars_to_keep_at_end = max_prompt_len - 3
        return "..." + current_directory_path[-chars_to_keep_at_end:] if chars_to_keep_at_end > 0 else "..."

    def update_input_prompt(self, current_directory_path: str):
        """Updates the input prompt with the current directory."""
        self.current_prompt_text = f"({self.format_prompt_dir(current_directory_path)}) > "
        if self.app and hasattr(self.app, 'invalidate'):
            self.app.invalidate()

    def set_normal_input_mode(self, accept_handler_func: callable, current_directory_path: str):
        """Resets the UI to the default state for normal command input."""
        logger.debug("UIManager: Setting normal input mode.")
        self.update_input_prompt(current_directory_path)
        if self.input_field:
            self.input_field.buffer.accept_handler = accept_handler_func
            self.input_field.buffer.reset()

    def set_flow_input_mode(self, prompt_text: str, accept_handler_func: callable):
        """Points the input line at a one-off question (e.g. quit confirmation)."""
        logger.debug(f"UIManager: Setting flow input mode. Prompt: '{prompt_text}'")
        self.current_prompt_text = prompt_text
        if self.input_field:
            self.input_field.buffer.accept_handler = accept_handler_func
            self.input_field.buffer.reset()
            if self.app and hasattr(self.app, 'invalidate'):
                self.app.invalidate()

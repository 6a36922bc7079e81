# tests/test_command_line.py

from prompt_toolkit.buffer import Buffer
from prompt_toolkit.history import InMemoryHistory

from panel_cmdline.command_line import CommandLine


def test_assign_text_puts_cursor_at_end():
    line = CommandLine()
    line.assign_text("ls -l")
    assert line.text == "ls -l"
    assert line.buffer.cursor_position == 5

def test_clean_empties_without_touching_history():
    history = InMemoryHistory()
    line = CommandLine(Buffer(history=history))
    line.assign_text("make test")
    line.clean()
    assert line.text == ""
    assert list(history.get_strings()) == []

def test_accepted_line_is_recorded_once():
    history = InMemoryHistory()
    buffer = Buffer(history=history, multiline=False)
    line = CommandLine(buffer)

    # Like the app: the accept handler keeps the text and the interpreter clears it later.
    buffer.accept_handler = lambda buff: True
    line.assign_text("make test")
    buffer.validate_and_handle()
    line.clean()
    assert line.text == ""
    assert list(history.get_strings()) == ["make test"]

def test_insert_with_extra_space():
    line = CommandLine()
    line.assign_text("vi")
    line.insert(" a", insert_extra_space=True)
    assert line.text == "vi a "

def test_insert_quoted_escapes_and_doubles_percent():
    line = CommandLine()
    line.assign_text("cat ")
    line.insert_quoted("my 50%.log")
    assert line.text == "cat my\\ 50%%.log"

def test_wraps_existing_buffer():
    buffer = Buffer()
    line = CommandLine(buffer)
    line.assign_text("x")
    assert buffer.text == "x"

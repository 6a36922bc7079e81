# panel_cmdline/errors.py

class CommandLineError(Exception):
    """Base class for errors raised while interpreting a command line."""
    pass

class ExpansionOverflow(CommandLineError):
    """Path expansion would grow past the configured path-length ceiling.

    Only raised when the expander runs in strict mode; the default policy
    truncates silently.
    """
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Path expansion exceeds the {limit}-character limit")

class DirectoryNotFound(CommandLineError):
    """No candidate directory (direct or via CDPATH) could be entered."""
    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot chdir to \"{path}\"\n{reason}")

class UnsupportedRemoteExecution(CommandLineError):
    """A generic command was submitted while the panel shows a non-local filesystem."""
    def __init__(self):
        super().__init__("Cannot execute commands on non-local filesystems")

class ShellBusy(CommandLineError):
    """The subshell is still running a previous command."""
    def __init__(self):
        super().__init__("The shell is already running a command")

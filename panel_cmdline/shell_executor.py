# panel_cmdline/shell_executor.py

import asyncio
import logging
import os
import shlex
import signal
import uuid
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Seconds close() waits for the subshell's process group after each signal.
CLOSE_TIMEOUT_SECONDS = 2.0


class ShellExecutor:
    """
    Runs generic command lines in a shell.

    With use_subshell the commands go to one long-lived shell process, so
    shell state (variables, functions, options) carries over between
    commands. If that shell dies, subshell_exited is set until restart().
    Without a subshell every command gets a fresh 'sh -c'.
    """

    def __init__(self, append_output: Callable[..., None], shell: str = "/bin/bash", use_subshell: bool = True):
        self.append_output = append_output
        self.shell = shell
        self.uses_subshell = use_subshell
        self.is_busy = False
        self.subshell_exited = False
        self.process: Optional[asyncio.subprocess.Process] = None

    async def start(self):
        """Spawns the persistent subshell as the leader of its own process group."""
        self.process = await asyncio.create_subprocess_exec(
            self.shell,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            start_new_session=True,
        )
        self.subshell_exited = False
        logger.info(f"Subshell '{self.shell}' started (pid {self.process.pid}).")

    async def restart(self):
        await self.close()
        await self.start()

    async def close(self):
        """
        Stops the subshell together with everything it started.

        Background jobs keep the output pipe open, and the process is only
        reaped once that pipe closes, so the whole group is signalled.
        """
        if self.process is None:
            return
        logger.info(f"Terminating subshell process group (pid {self.process.pid}).")
        for sig in (signal.SIGTERM, signal.SIGKILL):
            try:
                os.killpg(self.process.pid, sig)
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(self.process.wait(), CLOSE_TIMEOUT_SECONDS)
                break
            except asyncio.TimeoutError:
                logger.warning(f"Subshell group did not exit after {sig.name}.")
        self.process = None

    async def execute(self, command: str, cwd: str):
        """Executes one command line with 'cwd' as its working directory."""
        if not command.strip():
            self.append_output("⚠️ Empty command cannot be executed.", style_class='warning')
            logger.warning("Attempted to execute an empty command.")
            return
        logger.info(f"Executing command: '{command}' in '{cwd}'")
        self.is_busy = True
        try:
            self.append_output(f"$ {command}", style_class='executing')
            if self.uses_subshell:
                await self._execute_in_subshell(command, cwd)
            else:
                await self._execute_one_shot(command, cwd)
        except FileNotFoundError:
            self.append_output(f"❌ Shell '{self.shell}' or command not found for: {command}", style_class='error')
            logger.error(f"Shell or command not found for: {command}")
        except Exception as e:
            self.append_output(f"❌ Error executing '{command}': {e}", style_class='error')
            logger.exception(f"Error executing shell command: {e}")
        finally:
            self.is_busy = False

    async def _execute_one_shot(self, command: str, cwd: str):
        process = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd
        )
        stdout, stderr = await process.communicate()
        if stdout:
            self.append_output(stdout.decode(errors='replace').rstrip())
        if stderr:
            self.append_output(stderr.decode(errors='replace').rstrip(), style_class='warning')
        if process.returncode != 0:
            logger.warning(f"Command '{command}' exited with code {process.returncode}")
            if not stderr:
                self.append_output(f"⚠️ Command '{command}' exited with code {process.returncode}.", style_class='warning')

    @staticmethod
    def build_script(command: str, cwd: str, marker: str) -> str:
        """
        Wraps one command for the subshell.

        The command travels as a single quoted word for 'eval', so unbalanced
        quotes or a trailing backslash only fail that command, and its stdin
        is /dev/null so it cannot read the lines that follow it.
        """
        return (
            f"cd -- {shlex.quote(cwd)} && {{ eval {shlex.quote(command)}; }} </dev/null\n"
            f"printf '\\n%s %s\\n' {marker} \"$?\"\n"
        )

    async def _execute_in_subshell(self, command: str, cwd: str):
        if self.process is None or self.process.returncode is not None:
            await self.start()

        marker = f"__PANEL_CMDLINE_DONE_{uuid.uuid4().hex}__"
        self.process.stdin.write(self.build_script(command, cwd, marker).encode())
        await self.process.stdin.drain()

        lines = []
        status = None
        while True:
            raw = await self.process.stdout.readline()
            if not raw:
                break
            line = raw.decode(errors='replace')
            if line.startswith(marker):
                status = int(line[len(marker):].strip() or 0)
                break
            lines.append(line)

        output = ''.join(lines).rstrip()
        if output:
            self.append_output(output)

        if status is None:
            returncode = await self.process.wait()
            self.subshell_exited = True
            logger.warning(f"Subshell exited with code {returncode} while running '{command}'.")
            self.append_output(f"⚠️ The shell exited (code {returncode}).", style_class='warning')
        elif status != 0:
            logger.warning(f"Command '{command}' exited with code {status}")
            self.append_output(f"⚠️ Command '{command}' exited with code {status}.", style_class='warning')

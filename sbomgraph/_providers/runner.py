"""Bounded execution of native ecosystem tools.

Tools run in a session of their own so that a timeout can kill every process
they started, including children that inherited the output pipe. This relies
on POSIX process groups.
"""

import os
import selectors
import signal
import subprocess
import tempfile
import threading
from pathlib import Path
from typing import IO, List, Optional, Union

from sbomgraph.config import DEFAULT_TIMEOUT
from sbomgraph.exceptions import CommandExecutionError, CommandTimeoutError, ToolNotFoundError
from sbomgraph.logging_config import logger

# Seconds to wait for a killed process to exit
DEFAULT_GRACE_PERIOD = 5.0

# Seconds to wait for the output reader to flush after the process exits
DEFAULT_JOIN_TIMEOUT = 5.0

# Seconds between checks of the reader's stop flag
POLL_INTERVAL = 0.1

READ_SIZE = 65536


def log_command_error(command_name: str, stderr: str) -> None:
    """
    Log command errors with a standardized format.

    Args:
        command_name: The name of the command that failed
        stderr: The stderr output from the command
    """
    if stderr:
        logger.error(f"[{command_name}] error: {stderr.strip()}")


class _OutputReader:
    """Drains a process's standard output on a worker thread until EOF or stop()."""

    def __init__(self, stream: IO[bytes]) -> None:
        self._stream = stream
        self._chunks: List[bytes] = []
        self._stop = threading.Event()
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        fd = self._stream.fileno()
        try:
            with selectors.DefaultSelector() as selector:
                selector.register(fd, selectors.EVENT_READ)
                while not self._stop.is_set():
                    if not selector.select(POLL_INTERVAL):
                        continue
                    chunk = os.read(fd, READ_SIZE)
                    if not chunk:
                        break
                    self._chunks.append(chunk)
        except (OSError, ValueError) as e:
            if not self._stop.is_set():
                self.error = e

    def stop(self) -> None:
        self._stop.set()

    def output(self) -> str:
        text = b"".join(self._chunks).decode("utf-8", errors="replace")
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        if text and not text.endswith("\n"):
            text += "\n"
        return text


class BoundedProcessRunner:
    """
    Runs an external tool with a hard time budget and captures its stdout.

    Standard output is drained by one reader thread while the caller waits
    for the process, so a chatty tool cannot block on a full pipe. Standard
    error is spooled to a temporary file and logged when the tool fails.

    Example:
        runner = BoundedProcessRunner(timeout=5)
        output = runner.run(["cargo", "metadata", "--format-version", "1"], cwd="/path/to/project")
        if output is None:
            ...  # tool produced nothing usable
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        join_timeout: float = DEFAULT_JOIN_TIMEOUT,
    ) -> None:
        self.timeout = timeout
        self.grace_period = grace_period
        self.join_timeout = join_timeout

    def run(
        self,
        cmd: List[str],
        cwd: Optional[Union[str, Path]] = None,
        command_name: Optional[str] = None,
    ) -> Optional[str]:
        """
        Run a command and return its standard output.

        Args:
            cmd: Command to run as a list
            cwd: Working directory for the command
            command_name: Name of the command for logs and errors

        Returns:
            The captured output, or None when the command exits non-zero or
            prints nothing but whitespace

        Raises:
            ToolNotFoundError: If the executable does not exist
            CommandTimeoutError: If the command does not finish within the timeout
            CommandExecutionError: If the command cannot be started or its
                output cannot be read, e.g. because a child it left behind
                keeps the output pipe open
        """
        name = command_name or " ".join(cmd[:2])
        cwd_info = f" (cwd: {cwd})" if cwd else ""
        logger.debug(f"Running command: {' '.join(cmd)}{cwd_info} [timeout: {self.timeout}s]")

        with tempfile.TemporaryFile() as stderr_file:
            try:
                process = subprocess.Popen(
                    cmd,
                    cwd=str(cwd) if cwd else None,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=stderr_file,
                    shell=False,
                    start_new_session=True,
                )
            except FileNotFoundError:
                logger.error(f"{name} command not found")
                raise ToolNotFoundError(f"{name} command not found - is it installed?")
            except OSError as e:
                logger.error(f"{name} command could not be started: {e}")
                raise CommandExecutionError(f"{name} command could not be started: {e}")

            reader = _OutputReader(process.stdout)
            reader_thread = threading.Thread(target=reader.run, name=f"{name} output reader", daemon=True)
            reader_thread.start()

            try:
                try:
                    returncode = process.wait(timeout=self.timeout)
                except subprocess.TimeoutExpired:
                    self._terminate(process, name)
                    logger.error(f"{name} command timed out after {self.timeout} seconds")
                    raise CommandTimeoutError(f"{name} timed out after {self.timeout} seconds")

                # A child of the tool may still hold the pipe open
                reader_thread.join(self.join_timeout)
                if reader_thread.is_alive():
                    logger.error(f"{name} output was not closed within {self.join_timeout} seconds of exit")
                    raise CommandExecutionError(
                        f"{name} output was not fully read within {self.join_timeout} seconds"
                    )

                if reader.error is not None:
                    raise CommandExecutionError(f"Failed to read {name} output: {reader.error}") from reader.error

                if returncode != 0:
                    stderr_file.seek(0)
                    log_command_error(name, stderr_file.read().decode("utf-8", errors="replace"))
                    logger.warning(f"{name} failed with return code {returncode}")
                    return None

                output = reader.output()
                if not output.strip():
                    logger.warning(f"{name} produced no output")
                    return None
                return output
            finally:
                self._terminate(process, name)
                reader.stop()
                reader_thread.join(self.join_timeout)
                if reader_thread.is_alive():
                    logger.warning(f"{name} output reader did not stop within {self.join_timeout} seconds")
                else:
                    process.stdout.close()

    def _terminate(self, process: subprocess.Popen, name: str) -> None:
        """Kill the process group of a tool and give the tool a grace period to exit."""
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            # The whole group has already exited
            pass
        except PermissionError:
            process.kill()
        if process.returncode is not None:
            return
        try:
            process.wait(timeout=self.grace_period)
        except subprocess.TimeoutExpired:
            logger.warning(f"{name} did not exit within {self.grace_period} seconds of being killed")

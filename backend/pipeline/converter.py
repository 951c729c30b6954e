"""
SettleWatch Converter.

Runs the external conversion program and streams its output to the log.
Requires Python 3.11+.
"""

import shlex
import subprocess
from pathlib import Path

from utils.logger import LoggerMixin


class ConversionError(Exception):
    """The converter could not be run or exited with an error."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class Converter(LoggerMixin):
    """
    Invokes an external command on a stable file.

    The command is a template whose arguments may contain {source}
    and {dest} placeholders, e.g. "dnglab -d -v convert {source} {dest}".
    """

    def __init__(self, command_template: str, timeout: float | None = None) -> None:
        """
        Initialize the converter.

        Args:
            command_template: Command line with {source} and {dest} placeholders
            timeout: Seconds to wait for the process after its output closes
        """
        self._template = shlex.split(command_template)
        if not self._template:
            raise ValueError("converter command is empty")
        self._timeout = timeout

    def build_command(self, source: Path, dest: Path) -> list[str]:
        """Substitute the placeholders into the command template."""
        return [
            arg.format(source=str(source), dest=str(dest))
            for arg in self._template
        ]

    def convert(self, source: Path, dest: Path) -> None:
        """
        Convert one file.

        Args:
            source: Stable input file
            dest: Output file

        Raises:
            ConversionError: If the command is missing or fails
        """
        argv = self.build_command(source, dest)
        dest.parent.mkdir(parents=True, exist_ok=True)

        self.log.info("conversion_started", file=source.name, command=argv[0])
        try:
            process = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise ConversionError(f"cannot run {argv[0]}: {e}") from e

        with process:
            assert process.stdout is not None
            for line in process.stdout:
                line = line.rstrip()
                if line:
                    self.log.info("converter_output", file=source.name, line=line)
            try:
                returncode = process.wait(timeout=self._timeout)
            except subprocess.TimeoutExpired as e:
                process.kill()
                raise ConversionError(f"{argv[0]} timed out") from e

        if returncode != 0:
            raise ConversionError(
                f"{argv[0]} exited with status {returncode}",
                returncode=returncode,
            )

        self.log.info("conversion_finished", file=source.name, dest=str(dest))

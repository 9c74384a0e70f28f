import subprocess
from dataclasses import dataclass
from typing import Final

from logly import logger

TIMEOUT_RETURNCODE: Final[int] = 124


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Decoded outcome of one external command."""

    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def decode_output(data: bytes) -> str:
    """Decodes process output bytes as utf-8, replacing undecodable bytes.

    Args:
        data: Raw bytes to decode.

    Returns:
        Decoded text.
    """
    return data.decode("utf-8", errors="replace")


def run_command(argv: list[str], timeout_sec: int = 60) -> CommandResult:
    """Runs a command to completion on the calling thread.

    Never raises: a timeout is reported as return code 124 and any other failure
    to launch as return code 1, with the reason in `stderr`.

    Args:
        argv: Argument vector.
        timeout_sec: Seconds before the process is killed.

    Returns:
        The decoded command result.
    """
    try:
        logger.info(f"Starting subprocess timeout={timeout_sec}s argv={' '.join(argv)}")
        result = subprocess.run(argv, capture_output=True, timeout=timeout_sec)
        logger.info(f"Subprocess finished returncode={result.returncode}")
        return CommandResult(
            stdout=decode_output(result.stdout),
            stderr=decode_output(result.stderr),
            returncode=result.returncode,
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"Subprocess timed out argv={' '.join(argv)}")
        return CommandResult("", "timeout: command exceeded limit", TIMEOUT_RETURNCODE)
    except Exception as e:
        logger.exception("Subprocess execution failed")
        return CommandResult("", str(e), 1)

from pathlib import Path
from typing import Final

from logly import _LoggerProxy, logger

LOG_DIR_PATH: Final[Path] = Path(__file__).parent.parent.parent / "logs"


def init_logger(level: str = "INFO", log_dir: Path = LOG_DIR_PATH) -> _LoggerProxy:
    """Initialize the logger.

    Configures console output plus a size-rotated `app.log` under `log_dir`.

    Args:
        level: Minimum level to emit (e.g. "DEBUG", "INFO").
        log_dir: Directory receiving the log file.
    """
    logger.configure(
        level=level.upper(),
        color=True,
        console=True,
        auto_sink=True,
    )

    logger.add(f"{log_dir}/app.log", size_limit="10MB", retention=3)

    logger.success("logger initialized!")

    return logger

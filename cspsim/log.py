""" Logging functionality for all of cspsim. """
# clean
from enum import IntEnum
import os
from typing import Optional

LOGGING_LEVEL = 3
# no log file is written until initialize_properly sets a directory
LOGGING_PATH: Optional[str] = None
# for storing logs that are written before the filepath exists
PRE = True
PRE_LOGS = ""
PRE_PROFILE = ""
# the buffers keep only the latest characters until a log directory is set
PRE_LOGS_MAX_LENGTH = 1_000_000


class LogPrio(IntEnum):
    """Define a logging priority."""

    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    DEBUG = 4
    PROFILE = 5
    TRACE = 6

    @staticmethod
    def get_prio_string(prio: int) -> str:
        """Get the string representation of the priority."""
        prio_strings = {
            LogPrio.ERROR: "ERR",
            LogPrio.WARNING: "WRN",
            LogPrio.INFORMATION: "IFO",
            LogPrio.DEBUG: "DBG",
            LogPrio.PROFILE: "PRF",
            LogPrio.TRACE: "TRC",
        }
        return prio_strings.get(prio, "???")  # type: ignore


def error(message: str, logging_message_path: Optional[str] = None) -> None:
    """Log an error message."""
    log(LogPrio.ERROR, message, logging_message_path)


def warning(message: str, logging_message_path: Optional[str] = None) -> None:
    """Log a warning message."""
    log(LogPrio.WARNING, message, logging_message_path)


def information(message: str, logging_message_path: Optional[str] = None) -> None:
    """Log a information message."""
    log(LogPrio.INFORMATION, message, logging_message_path)


def trace(message: str, logging_message_path: Optional[str] = None) -> None:
    """Log a trace message."""
    log(LogPrio.TRACE, message, logging_message_path)


def debug(message: str, logging_message_path: Optional[str] = None) -> None:
    """Log a debug message."""
    log(LogPrio.DEBUG, message, logging_message_path)


def profile(message: str, logging_message_path: Optional[str] = None) -> None:
    """Log a profile message."""
    log(LogPrio.PROFILE, message, logging_message_path)
    log_profile_file(message, logging_message_path)


# The logging_message_path can not be resolved in the function head because then it
# would always use the LOGGING_PATH at definition time, not at runtime.
def log(prio: int, message: str, logging_message_path: Optional[str] = None) -> None:
    """Print a log message and append it to the log file, if one is set up."""
    global PRE_LOGS
    if logging_message_path is None:
        logging_message_path = LOGGING_PATH
    if prio <= LOGGING_LEVEL:
        print(str(LogPrio.get_prio_string(prio)) + ":" + message)

    if logging_message_path is not None:
        _append_to_file(logging_message_path, "cspsim_simulation.log", message)
    elif PRE:
        PRE_LOGS = _append_to_buffer(PRE_LOGS, message)


def log_profile_file(message: str, logging_message_path: Optional[str] = None) -> None:
    """Write profile message to the profiling logfile."""
    global PRE_PROFILE
    if logging_message_path is None:
        logging_message_path = LOGGING_PATH
    if logging_message_path is not None:
        _append_to_file(logging_message_path, "profiling_timeuse.log", message)
    elif PRE:
        PRE_PROFILE = _append_to_buffer(PRE_PROFILE, message)


def _append_to_buffer(buffer: str, message: str) -> str:
    buffer += message + "\n"
    if len(buffer) > PRE_LOGS_MAX_LENGTH:
        buffer = buffer[-PRE_LOGS_MAX_LENGTH:]
        # drop the cut first line
        buffer = buffer[buffer.find("\n") + 1:]
    return buffer


def _append_to_file(directory: str, file_name: str, message: str) -> None:
    if not os.path.exists(directory):
        os.makedirs(directory)
    try:
        with open(os.path.join(directory, file_name), "a", encoding="utf-8") as filestream:
            filestream.write(message + "\n")
    except OSError:
        print(file_name + " could not be appended. "
              "This might happen when too many simultaneous simulations are running.")


def initialize_properly(logging_path: str) -> None:
    """Create actual logging path and file and move pre logs there."""
    global PRE_LOGS, PRE_PROFILE, PRE, LOGGING_PATH
    if not PRE:
        print("WARNING! Logging seems to be already initialized.")
    LOGGING_PATH = logging_path  # set actual logging path
    if not os.path.exists(LOGGING_PATH):
        os.makedirs(LOGGING_PATH)  # if folder does not exist, create it

    _append_to_file(LOGGING_PATH, "cspsim_simulation.log", PRE_LOGS.rstrip("\n"))
    _append_to_file(LOGGING_PATH, "profiling_timeuse.log", PRE_PROFILE.rstrip("\n"))

    # turn off pre_logging and clear pre_logs
    PRE = False
    PRE_LOGS = ""
    PRE_PROFILE = ""

"""
Starts installed executables as detached child processes.
"""

import logging
import os
import subprocess
from pathlib import Path

log = logging.getLogger(__name__)


def launch_detached(executable: Path, cwd: Path) -> int:
    """
    Starts `executable` with `cwd` as its working directory and returns its pid
    without waiting for it to exit.

    Raises:
        OSError: If the operating system refuses to start the process.
    """
    kwargs = {}
    if os.name == "nt":
        kwargs["creationflags"] = (
            subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
        )
    else:
        kwargs["start_new_session"] = True

    process = subprocess.Popen(  # noqa: S603
        [str(executable)],
        cwd=str(cwd),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        close_fds=True,
        **kwargs,
    )
    log.debug(f"Started '{executable}' (pid {process.pid}) in '{cwd}'.")
    return process.pid

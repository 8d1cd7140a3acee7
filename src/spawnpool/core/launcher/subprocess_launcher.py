"""
Subprocess Launcher

Launches commands as detached OS processes.
"""

import logging
import os
import shlex
import subprocess
from typing import Dict, Optional

from .exceptions import LaunchError
from .interface import BaseLauncher
from .models import LaunchResult

logger = logging.getLogger(__name__)


class SubprocessLauncher(BaseLauncher):
    """
    Launcher backed by ``subprocess.Popen``.

    Processes are started in their own session with stdio detached, so they
    outlive the request that started them. The launcher keeps the ``Popen``
    objects around and reaps exited children on every launch and whenever
    ``reap()`` is called.
    """

    def __init__(
        self,
        shell: bool = False,
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
    ):
        """
        Initialize subprocess launcher.

        Args:
            shell: Run commands through /bin/sh instead of argv splitting
            env: Environment for launched processes (inherits if None)
            cwd: Working directory for launched processes
        """
        self.shell = shell
        self.env = env
        self.cwd = cwd
        self._children: Dict[int, subprocess.Popen] = {}

    def launch(self, command: str, startup_id: Optional[str] = None) -> LaunchResult:
        self.reap()

        try:
            args = command if self.shell else shlex.split(command)
        except ValueError as e:
            raise LaunchError(command, str(e)) from e
        if not args:
            raise LaunchError(command, "empty command")

        env = self.env
        if startup_id:
            env = dict(self.env if self.env is not None else os.environ)
            env["DESKTOP_STARTUP_ID"] = startup_id

        try:
            proc = subprocess.Popen(
                args,
                shell=self.shell,
                env=env,
                cwd=self.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except (OSError, ValueError) as e:
            raise LaunchError(command, str(e)) from e

        self._children[proc.pid] = proc
        logger.debug(f"Launched {command!r} as pid {proc.pid}")
        return LaunchResult(pid=proc.pid, command=command, startup_id=startup_id)

    def reap(self) -> int:
        reaped = 0
        for pid, proc in list(self._children.items()):
            if proc.poll() is not None:
                del self._children[pid]
                reaped += 1

        if reaped:
            logger.debug(f"Reaped {reaped} exited children")
        return reaped

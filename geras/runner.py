"""Run an external tool off the calling thread and capture its merged output."""

import logging
import os
import shlex
import subprocess
import sys
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from .errors import LaunchFailedError, ProcessFailedError, Termination

_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="geras-run")


@dataclass(frozen=True)
class RunOutcome:
    returncode: Optional[int]
    termination: Termination
    output: str = ""
    launch_error: Optional[OSError] = None

    @property
    def succeeded(self) -> bool:
        return self.termination is Termination.EXIT and self.returncode == 0

    def raise_for_status(self, tool):
        if self.succeeded:
            return
        if self.termination is Termination.LAUNCH_FAILED:
            raise LaunchFailedError(tool, self.launch_error)
        raise ProcessFailedError(tool, self.returncode, self.termination, self.output)


def merged_environment(overlay=None):
    env = dict(os.environ)
    if overlay:
        env.update(overlay)
    return env


def run(executable, arguments, environment=None) -> RunOutcome:
    """Run to completion; never raises for tool failures, see RunOutcome."""
    cmd = [os.fspath(executable)] + list(arguments)
    logging.info(f"Running command: {shlex.join(cmd)}")

    kwargs = {
        'stdout': subprocess.PIPE,
        'stderr': subprocess.STDOUT,
        'env': merged_environment(environment),
    }
    if sys.platform == "win32":
        kwargs['creationflags'] = subprocess.CREATE_NO_WINDOW

    try:
        proc = subprocess.Popen(cmd, **kwargs)
    except OSError as e:
        logging.error(f"Could not launch {cmd[0]}: {e}")
        return RunOutcome(None, Termination.LAUNCH_FAILED, launch_error=e)

    # communicate() drains the pipe so a chatty child can't block on a full buffer
    data, _ = proc.communicate()
    output = data.decode("utf-8", errors="replace").strip()
    rc = proc.returncode

    if rc == 0:
        return RunOutcome(0, Termination.EXIT, output)
    if rc < 0:
        outcome = RunOutcome(-rc, Termination.SIGNAL, output)
    else:
        outcome = RunOutcome(rc, Termination.EXIT, output)
    logging.error(f"{cmd[0]} ended with {outcome.termination.value} {outcome.returncode}: {output[:400]}")
    return outcome


def submit(executable, arguments, environment=None) -> "Future[RunOutcome]":
    """Schedule ``run`` on the shared worker pool."""
    return _executor.submit(run, executable, arguments, environment)

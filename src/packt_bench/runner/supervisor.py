"""
Deadline-bounded supervision of one external solver process.

One call to ``solve`` spawns exactly one process, feeds it the problem on
stdin, collects stdout/stderr and races the process against the deadline.
The solver runs in its own session; whatever happens, that whole process
group is killed and reaped before ``solve`` returns.

    Spawning → Running → Completed   → SolverOutput
                       → TimedOut    → SolverTimeoutError
                       → Failed      → NonZeroExitError / SolverIOError
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
import time
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from packt_bench.core.errors import NonZeroExitError, SolverIOError, SolverTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_ENV_NAMES = ("RETRY", "N_HEIGHTS")


@dataclass(frozen=True)
class SolverParameters:
    """Tuning values for one run, exposed to the solver via its environment."""

    retry: int
    n_candidates: int

    def environ(
        self,
        base: Optional[Mapping[str, str]] = None,
        names: tuple[str, str] = DEFAULT_ENV_NAMES,
    ) -> dict[str, str]:
        """
        Build the environment mapping for a spawned solver.

        Args:
            base:  Environment to extend (defaults to a copy of os.environ).
            names: Variable names for (retry, n_candidates).

        Returns:
            A fresh dict; neither ``base`` nor os.environ is modified.
        """
        env = dict(os.environ if base is None else base)
        retry_name, candidates_name = names
        env[retry_name] = str(self.retry)
        env[candidates_name] = str(self.n_candidates)
        return env


@dataclass(frozen=True)
class SolverOutput:
    """Captured result of a solver that exited with status 0."""

    stdout: str
    stderr: str
    returncode: int
    duration: float  # seconds, monotonic


def solver_command(solver: Path | str) -> list[str]:
    """
    Return the argv that runs a solver.

    Jar files run under ``java -jar``, Python scripts under the current
    interpreter, anything else is executed directly.
    """
    path = str(solver)
    suffix = Path(path).suffix.lower()
    if suffix == ".jar":
        return ["java", "-jar", path]
    if suffix == ".py":
        return [sys.executable, path]
    return [path]


def _excerpt(stderr: str, limit: int) -> str:
    text = stderr.strip()
    if limit <= 0:
        return ""
    if len(text) > limit:
        text = "..." + text[-limit:]
    return text


def _kill_group(proc: asyncio.subprocess.Process) -> None:
    """SIGKILL the solver's whole session, including anything it spawned."""
    if os.name != "posix":
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        return
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


async def _kill(proc: asyncio.subprocess.Process, grace: float) -> None:
    """Kill the solver's process group and wait a bounded time for it to be reaped."""
    _kill_group(proc)
    try:
        await asyncio.wait_for(proc.wait(), timeout=grace)
    except asyncio.TimeoutError:
        logger.warning("Solver pid %s not reaped %.1fs after kill", proc.pid, grace)


async def solve(
    solver: Path | str,
    problem_text: str,
    deadline: float,
    parameters: SolverParameters,
    env_names: tuple[str, str] = DEFAULT_ENV_NAMES,
    kill_grace: float = 5.0,
    stderr_excerpt_chars: int = 500,
) -> SolverOutput:
    """
    Run one solver process to completion or deadline.

    Args:
        solver:               Path to the solver executable, jar or script.
        problem_text:         Problem text written to the solver's stdin.
        deadline:             Seconds from spawn before the solver is killed.
        parameters:           Retry / candidate-count values for this run.
        env_names:            Environment variable names for the parameters.
        kill_grace:           Upper bound on waiting for a killed process.
        stderr_excerpt_chars: Tail of stderr kept in NonZeroExitError.

    Returns:
        SolverOutput of a process that exited 0 within the deadline.

    Raises:
        SolverTimeoutError: Deadline elapsed; partial output is discarded.
        NonZeroExitError:   Process exited with a non-zero status.
        SolverIOError:      Process could not be spawned or its pipes failed.
    """
    argv = solver_command(solver)
    env = parameters.environ(names=env_names)

    logger.debug("Spawning %s", " ".join(argv))
    start = time.monotonic()
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
            start_new_session=True,
        )
    except OSError as e:
        raise SolverIOError(f"cannot start {argv[0]}: {e}") from e

    logger.debug("Running pid %s, deadline %.3fs", proc.pid, deadline)
    try:
        stdout, stderr = await asyncio.wait_for(
            proc.communicate(problem_text.encode("utf-8")),
            timeout=deadline,
        )
    except asyncio.TimeoutError:
        logger.debug("TimedOut pid %s after %.3fs", proc.pid, time.monotonic() - start)
        raise SolverTimeoutError(deadline) from None
    except OSError as e:
        logger.debug("Failed pid %s: %s", proc.pid, e)
        raise SolverIOError(f"pipe error: {e}") from e
    finally:
        if proc.returncode is None:
            await _kill(proc, kill_grace)
        else:
            # the solver exited; take down anything it left behind
            _kill_group(proc)

    duration = time.monotonic() - start
    stderr_text = stderr.decode("utf-8", errors="replace")

    if proc.returncode != 0:
        logger.debug("Failed pid %s with status %s", proc.pid, proc.returncode)
        raise NonZeroExitError(proc.returncode, _excerpt(stderr_text, stderr_excerpt_chars))

    logger.debug("Completed pid %s in %.3fs", proc.pid, duration)
    return SolverOutput(
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr_text,
        returncode=proc.returncode,
        duration=duration,
    )

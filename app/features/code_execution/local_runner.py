"""Dev-only local execution for the platform's own language (Go).

There is no sandboxing here: no memory cap, no network isolation, no
process limits. It only keeps a development setup usable without a Judge0
instance and must never serve untrusted production traffic.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import signal
import tempfile
import time
from dataclasses import dataclass
from typing import List, Optional

from app.Core.config import Settings, get_settings
from app.features.judge0.schemas import (
    STATUS_ACCEPTED,
    STATUS_COMPILATION_ERROR,
    STATUS_RUNTIME_ERROR_NZEC,
    STATUS_TIME_LIMIT_EXCEEDED,
    Judge0ExecutionResult,
    Judge0Status,
)
from .errors import LocalExecutionError

logger = logging.getLogger(__name__)

KILLED_EXIT_CODE = -1


@dataclass
class _Completed:
    returncode: int
    stdout: str
    stderr: str


def _decode(raw: Optional[bytes]) -> str:
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")


def _kill_group(proc: asyncio.subprocess.Process) -> None:
    # Leftover members keep the output pipes open; reap them even after a clean exit.
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        pass


class LocalGoRunner:
    language = "go"

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self.timeout_s = settings.local_runner_timeout_s
        self.go_binary = settings.go_binary

    def supports(self, language: str) -> bool:
        return language == self.language

    async def _communicate(
        self,
        argv: List[str],
        *,
        cwd: str,
        stdin: Optional[str],
        timeout_s: float,
    ) -> Optional[_Completed]:
        """Run ``argv`` to completion; ``None`` means it was killed at the deadline.

        The child leads its own process group so that everything it spawns
        (``go build`` workers, programs forking helpers) dies with it.
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=cwd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            raise LocalExecutionError(f"cannot start {argv[0]}: {e}") from e

        try:
            out, err = await asyncio.wait_for(
                proc.communicate((stdin or "").encode("utf-8")),
                timeout=max(timeout_s, 0.0),
            )
        except asyncio.TimeoutError:
            logger.info("local run killed at deadline: %s", argv[0])
            return None
        finally:
            _kill_group(proc)
            if proc.returncode is None:
                await proc.wait()
        return _Completed(proc.returncode, _decode(out), _decode(err))

    @staticmethod
    def _result(status_id: int, description: str, *, started: float, **fields) -> Judge0ExecutionResult:
        return Judge0ExecutionResult(
            status=Judge0Status(id=status_id, description=description),
            time=f"{time.monotonic() - started:.3f}",
            **fields,
        )

    async def run(self, source: str, stdin: Optional[str] = None) -> Judge0ExecutionResult:
        """Build and run ``source``; build and run share one wall-clock deadline."""
        started = time.monotonic()
        deadline = started + self.timeout_s
        try:
            work_dir = tempfile.mkdtemp(prefix="go-run-")
        except OSError as e:
            raise LocalExecutionError(f"cannot create work dir: {e}") from e
        try:
            try:
                with open(os.path.join(work_dir, "main.go"), "w", encoding="utf-8") as f:
                    f.write(source)
            except OSError as e:
                raise LocalExecutionError(f"cannot write source: {e}") from e

            build = await self._communicate(
                [self.go_binary, "build", "-o", "main", "main.go"],
                cwd=work_dir,
                stdin=None,
                timeout_s=deadline - time.monotonic(),
            )
            if build is None:
                return self._result(
                    STATUS_TIME_LIMIT_EXCEEDED, "Time Limit Exceeded", started=started, exit_code=KILLED_EXIT_CODE,
                )
            if build.returncode != 0:
                return self._result(
                    STATUS_COMPILATION_ERROR,
                    "Compilation Error",
                    started=started,
                    compile_output=(build.stderr or build.stdout),
                    exit_code=build.returncode,
                )

            run = await self._communicate(
                [os.path.join(work_dir, "main")],
                cwd=work_dir,
                stdin=stdin,
                timeout_s=deadline - time.monotonic(),
            )
            if run is None:
                return self._result(
                    STATUS_TIME_LIMIT_EXCEEDED, "Time Limit Exceeded", started=started, exit_code=KILLED_EXIT_CODE,
                )
            if run.returncode != 0:
                return self._result(
                    STATUS_RUNTIME_ERROR_NZEC,
                    "Runtime Error (NZEC)",
                    started=started,
                    stdout=run.stdout,
                    stderr=run.stderr,
                    exit_code=run.returncode,
                )
            return self._result(
                STATUS_ACCEPTED, "Accepted", started=started, stdout=run.stdout, stderr=run.stderr, exit_code=0,
            )
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)
            logger.debug("local go run finished in %.3fs", time.monotonic() - started)


local_runner = LocalGoRunner()

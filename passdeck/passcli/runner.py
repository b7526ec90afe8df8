"""
pass-cli process runner — spawn, bound, classify.

Runs the external binary as an asyncio subprocess with a wall-clock timeout
and a cap on captured output, then turns any failure into a ``PassCliError``.
Failure text is matched against an ordered tuple of ``ClassificationRule``;
swap the tuple to follow pass-cli wording changes without touching the
control flow below.
"""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

from passdeck.passcli.errors import ERROR_MESSAGES, PassCliError, PassCliErrorType

logger = logging.getLogger(__name__)

DEFAULT_CLI_PATH = "pass-cli"
DEFAULT_TIMEOUT_SECONDS = 60.0
MAX_OUTPUT_BYTES = 20 * 1024 * 1024
UNKNOWN_DETAIL_MAX_CHARS = 600

_READ_CHUNK = 64 * 1024


@dataclass(frozen=True)
class ClassificationRule:
    """Failure text containing any of ``patterns`` maps to ``error_type``."""

    error_type: PassCliErrorType
    patterns: tuple[str, ...]

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        return any(p in lowered for p in self.patterns)


# Order matters: first matching rule wins.
DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        PassCliErrorType.KEYRING_ERROR,
        ("cannot get the encryption key", "error creating client features"),
    ),
    ClassificationRule(
        PassCliErrorType.NOT_AUTHENTICATED,
        (
            "requires an authenticated client",
            "not authenticated",
            "login required",
            "please login",
            "not logged in",
        ),
    ),
    ClassificationRule(
        PassCliErrorType.NETWORK_ERROR,
        ("network", "timeout", "timed out", "connection", "dns"),
    ),
)


def classify_output(
    text: str,
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> PassCliErrorType:
    """Classify failure text; UNKNOWN when no rule matches."""
    for rule in rules:
        if rule.matches(text):
            return rule.error_type
    return PassCliErrorType.UNKNOWN


def truncate_middle(value: str, max_len: int) -> str:
    """Shorten ``value`` to ``max_len`` chars, keeping head and tail."""
    if len(value) <= max_len:
        return value
    head = max(0, (max_len - 1) // 2)
    tail = max(0, max_len - head - 1)
    return f"{value[:head]}…{value[len(value) - tail:]}"


def strip_surrounding_quotes(value: str) -> str:
    trimmed = value.strip()
    if len(trimmed) >= 2 and trimmed[0] == trimmed[-1] and trimmed[0] in ("'", '"'):
        return trimmed[1:-1].strip()
    return trimmed


def resolve_cli_path(configured: str | None) -> str:
    """Executable from configuration, or the bare default name."""
    value = (configured or "").strip()
    return strip_surrounding_quotes(value or DEFAULT_CLI_PATH)


def build_search_path(
    platform: str | None = None,
    current: str | None = None,
    home: Path | None = None,
) -> str:
    """PATH with common install locations prepended (unchanged on Windows)."""
    platform = platform or sys.platform
    current = os.environ.get("PATH", "") if current is None else current

    if platform == "win32":
        return current

    home = home or Path.home()
    extra = [
        "/usr/local/bin",
        f"{home}/.local/bin",
        f"{home}/bin",
        "/usr/bin",
        "/bin",
    ]
    if platform == "darwin":
        extra.insert(0, "/opt/homebrew/bin")

    return os.pathsep.join(p for p in [*extra, current] if p)


class _OutputLimitExceeded(Exception):
    pass


@dataclass
class _Completed:
    returncode: int
    stdout: str
    stderr: str


async def _read_capped(stream: asyncio.StreamReader | None, limit: int) -> bytes:
    if stream is None:
        return b""
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise _OutputLimitExceeded(total)
        chunks.append(chunk)
    return b"".join(chunks)


class ProcessRunner:
    """Invoke pass-cli and return its stdout, or raise a classified PassCliError."""

    def __init__(
        self,
        cli_path: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_output_bytes: int = MAX_OUTPUT_BYTES,
        rules: Sequence[ClassificationRule] = DEFAULT_RULES,
        platform: str | None = None,
    ) -> None:
        self.cli_path = resolve_cli_path(cli_path)
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes
        self.rules = tuple(rules)
        self.platform = platform or sys.platform

    def build_env(self) -> dict[str, str]:
        env = os.environ.copy()
        env["PATH"] = build_search_path(self.platform, env.get("PATH", ""))
        return env

    async def run(self, args: Sequence[str]) -> str:
        """Run ``pass-cli <args>`` and return trimmed stdout."""
        argv = list(args)
        # Only the subcommand words: later args may be secrets.
        logger.debug("pass-cli %s", " ".join(argv[:2]))

        try:
            completed = await self._execute_with_fallback(argv, self.build_env())
        except asyncio.TimeoutError:
            raise PassCliError(
                ERROR_MESSAGES[PassCliErrorType.TIMEOUT], PassCliErrorType.TIMEOUT
            ) from None
        except FileNotFoundError:
            raise PassCliError(
                ERROR_MESSAGES[PassCliErrorType.NOT_INSTALLED].format(cli_path=self.cli_path),
                PassCliErrorType.NOT_INSTALLED,
            ) from None
        except _OutputLimitExceeded as e:
            logger.warning("pass-cli output exceeded %d bytes", self.max_output_bytes)
            raise PassCliError(
                f"pass-cli output exceeded {self.max_output_bytes} bytes ({e.args[0]} read).",
                PassCliErrorType.UNKNOWN,
            ) from None
        except OSError as e:
            self._raise_classified(str(e), "")

        if completed.returncode != 0:
            self._raise_classified(
                f"{self.cli_path} exited with status {completed.returncode}",
                completed.stderr,
            )

        return completed.stdout.strip()

    def _raise_classified(self, message: str, stderr: str) -> NoReturn:
        combined = "\n".join(s.strip() for s in (stderr, message) if s.strip())
        error_type = classify_output(combined, self.rules)

        if error_type is PassCliErrorType.UNKNOWN:
            logger.warning("Unclassified pass-cli failure: %s", truncate_middle(combined, 200))
            detail = (
                truncate_middle(combined, UNKNOWN_DETAIL_MAX_CHARS)
                if combined
                else ERROR_MESSAGES[PassCliErrorType.UNKNOWN]
            )
            raise PassCliError(detail, PassCliErrorType.UNKNOWN)

        logger.debug("pass-cli failure classified as %s", error_type)
        raise PassCliError(ERROR_MESSAGES[error_type], error_type)

    async def _execute_with_fallback(
        self, args: list[str], env: Mapping[str, str]
    ) -> _Completed:
        try:
            return await self._execute(self.cli_path, args, env)
        except FileNotFoundError:
            if self.platform != "win32" or self.cli_path.lower().endswith(".exe"):
                raise
            logger.debug("Retrying pass-cli with .exe suffix")
            return await self._execute(f"{self.cli_path}.exe", args, env)

    async def _execute(
        self, executable: str, args: list[str], env: Mapping[str, str]
    ) -> _Completed:
        kwargs: dict = {}
        if self.platform == "win32":
            kwargs["creationflags"] = getattr(subprocess, "CREATE_NO_WINDOW", 0)

        proc = await asyncio.create_subprocess_exec(
            executable,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=dict(env),
            **kwargs,
        )

        try:
            # One deadline covers both pipes and the exit status.
            stdout, stderr, returncode = await asyncio.wait_for(
                self._communicate(proc), timeout=self.timeout
            )
        except (asyncio.TimeoutError, _OutputLimitExceeded, asyncio.CancelledError):
            await self._kill(proc)
            raise

        return _Completed(
            returncode=returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    async def _communicate(
        self, proc: asyncio.subprocess.Process
    ) -> tuple[bytes, bytes, int]:
        readers = [
            asyncio.create_task(
                _read_capped(proc.stdout, self.max_output_bytes), name="pass-cli-stdout"
            ),
            asyncio.create_task(
                _read_capped(proc.stderr, self.max_output_bytes), name="pass-cli-stderr"
            ),
        ]
        try:
            stdout, stderr = await asyncio.gather(*readers)
        finally:
            for task in readers:
                task.cancel()
            await asyncio.gather(*readers, return_exceptions=True)
        return stdout, stderr, await proc.wait()

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        await proc.wait()

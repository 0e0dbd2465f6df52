from __future__ import annotations

from typing import Iterable

SOURCE_MAX_BYTES = 128 * 1024
STDIN_MAX_BYTES = 32 * 1024

class QuotaError(ValueError):
    pass

def enforce_source_stdin(source: str, stdin: str | None, test_inputs: Iterable[str] = ()):
    if len(source.encode()) > SOURCE_MAX_BYTES:
        raise QuotaError("payload_too_large: code exceeds 128KiB limit")
    if stdin and len(stdin.encode()) > STDIN_MAX_BYTES:
        raise QuotaError("payload_too_large: stdin exceeds 32KiB limit")
    for idx, data in enumerate(test_inputs):
        if data and len(data.encode()) > STDIN_MAX_BYTES:
            raise QuotaError(f"payload_too_large: test_cases[{idx}].input exceeds 32KiB limit")

__all__ = ["enforce_source_stdin", "QuotaError", "SOURCE_MAX_BYTES", "STDIN_MAX_BYTES"]

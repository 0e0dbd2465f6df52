from __future__ import annotations

from typing import Dict, List

from .errors import UnsupportedLanguageError

# Platform language name -> Judge0 CE language id
LANGUAGE_IDS: Dict[str, int] = {
    "python": 71,      # Python 3
    "javascript": 63,  # Node.js
    "java": 62,        # Java (OpenJDK)
    "go": 60,          # Go
    "cpp": 54,         # C++17 (GCC)
}


def supported_languages() -> List[str]:
    return list(LANGUAGE_IDS.keys())


def resolve_language_id(language: str) -> int:
    try:
        return LANGUAGE_IDS[language]
    except (KeyError, TypeError):
        raise UnsupportedLanguageError(language, supported_languages()) from None


__all__ = ["LANGUAGE_IDS", "supported_languages", "resolve_language_id"]

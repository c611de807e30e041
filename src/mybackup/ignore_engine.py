from __future__ import annotations

from typing import Iterable

import pathspec


class IgnoreEngine:
    def __init__(self, patterns: Iterable[str]) -> None:
        self._patterns = [pattern for pattern in patterns if pattern.strip()]
        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", self._patterns)

    def __bool__(self) -> bool:
        return bool(self._patterns)

    def is_ignored(self, relative_path: str, is_dir: bool = False) -> bool:
        candidate = f"{relative_path}/" if is_dir and not relative_path.endswith("/") else relative_path
        return self._spec.match_file(candidate)


def build_ignore_engine(patterns: Iterable[str]) -> IgnoreEngine | None:
    engine = IgnoreEngine(patterns)
    return engine if engine else None

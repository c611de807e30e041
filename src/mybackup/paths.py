from __future__ import annotations

import os
from typing import Callable


CONTAINMENT_SUBSTRING = "substring"
CONTAINMENT_PREFIX = "prefix"
CONTAINMENT_MODES = (CONTAINMENT_SUBSTRING, CONTAINMENT_PREFIX)


def base_name(path: str) -> str:
    return path.split(os.sep)[-1]


def strip_trailing_separator(path: str) -> str:
    if path.endswith(os.sep):
        return path[: -len(os.sep)]
    return path


def is_same_or_within(candidate: str, target: str) -> bool:
    """Textual containment check.

    Any source whose path contains ``target`` as a substring counts as inside
    it, so ``/data/foo`` is reported as within ``/data/fo``.
    """
    target = strip_trailing_separator(target)
    if strip_trailing_separator(candidate) == target:
        return True
    return target in candidate


def is_path_within(candidate: str, target: str) -> bool:
    candidate_abs = os.path.normpath(os.path.abspath(candidate))
    target_abs = os.path.normpath(os.path.abspath(target))
    if candidate_abs == target_abs:
        return True
    prefix = target_abs if target_abs.endswith(os.sep) else target_abs + os.sep
    return candidate_abs.startswith(prefix)


def containment_check(mode: str) -> Callable[[str, str], bool]:
    if mode == CONTAINMENT_SUBSTRING:
        return is_same_or_within
    if mode == CONTAINMENT_PREFIX:
        return is_path_within
    raise ValueError(f"containment must be one of: {', '.join(CONTAINMENT_MODES)}")

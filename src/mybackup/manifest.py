from __future__ import annotations

from pathlib import Path


class ManifestError(OSError):
    pass


def read_manifest(manifest_path: Path) -> list[str]:
    """Return the backup sources listed in ``manifest_path``, one per line.

    Blank and whitespace-only lines are dropped. Every other line is kept
    verbatim (no trimming, no comments) and in file order, duplicates included.
    Bytes that are not UTF-8 become surrogate escapes, so the paths reach
    ``os`` calls unchanged.
    """
    try:
        text = Path(manifest_path).read_text(encoding="utf-8", errors="surrogateescape")
    except OSError as exc:
        raise ManifestError(f"Cannot read manifest {manifest_path}: {exc}") from exc

    return [line for line in text.splitlines() if line.strip()]

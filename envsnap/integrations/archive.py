"""Zip export and import of a snapshot directory.

The archive is a flat zip whose entries are exactly the files of the
snapshot directory: metadata records and artifacts, under their stored
names.  Import refuses entries with directory components and never
overwrites a file that already exists, since snapshot ids are immutable.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path, PurePosixPath

from envsnap.core.store import SnapshotStore

logger = logging.getLogger(__name__)


class ArchiveError(RuntimeError):
    """Raised when an archive cannot be written or read."""


def export_snapshots(store: SnapshotStore, output_zip: Path) -> list[str]:
    """Write every file of the snapshot directory into *output_zip*.

    Returns the archived names.
    """
    names = sorted(
        p.name for p in store.base_path.iterdir()
        if p.is_file() and not p.name.startswith(".")
    )
    if not names:
        raise ArchiveError(f"No snapshots to export in {store.base_path}")

    output_zip = Path(output_zip)
    output_zip.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(output_zip, "w", zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
        for name in names:
            zf.write(store.base_path / name, arcname=name)
    logger.info("Exported %d files to %s", len(names), output_zip)
    return names


def _safe_entry_name(name: str) -> str | None:
    path = PurePosixPath(name.replace("\\", "/"))
    if len(path.parts) != 1 or path.name in ("", ".", ".."):
        return None
    return path.name


def import_snapshots(store: SnapshotStore, input_zip: Path) -> tuple[list[str], list[str]]:
    """Extract *input_zip* into the snapshot directory.

    Returns ``(imported, skipped)`` name lists.  Entries that already exist
    or that carry path components are skipped.
    """
    input_zip = Path(input_zip)
    if not input_zip.exists():
        raise ArchiveError(f"Archive not found: {input_zip}")

    imported: list[str] = []
    skipped: list[str] = []
    try:
        with zipfile.ZipFile(input_zip) as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                name = _safe_entry_name(info.filename)
                if name is None:
                    logger.warning("Skipping unsafe archive entry %r", info.filename)
                    skipped.append(info.filename)
                    continue
                target = store.base_path / name
                if target.exists():
                    logger.info("Skipping %s: already present", name)
                    skipped.append(name)
                    continue
                target.write_bytes(zf.read(info))
                imported.append(name)
    except zipfile.BadZipFile as exc:
        raise ArchiveError(f"Not a zip archive: {input_zip}") from exc

    logger.info("Imported %d files from %s", len(imported), input_zip)
    return imported, skipped

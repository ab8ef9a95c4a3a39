from __future__ import annotations
from pathlib import Path
from typing import Any, Optional, Tuple
import json, logging, os

logger = logging.getLogger(__name__)


def _ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


class JsonFileStore:
    """
    Whole-document JSON storage under one directory.

    - read(): missing -> None, unreadable/corrupt -> None (logged), so callers fall back to defaults
    - write_atomic(): temp file + os.replace, a crash mid-write keeps the previous document
    - delete(): no-op when the document does not exist
    """

    def __init__(self, root: Path):
        self.root = Path(root).expanduser()
        _ensure_dir(self.root)

    def path_for(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name.startswith("."):
            raise ValueError(f"Invalid document name: {name!r}")
        return self.root / name

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def stamp(self, name: str) -> Optional[Tuple[int, int, int]]:
        """(inode, mtime_ns, size) of the document, None when it is missing; changes on every write_atomic."""
        try:
            st = self.path_for(name).stat()
        except OSError:
            return None
        return (st.st_ino, st.st_mtime_ns, st.st_size)

    def read(self, name: str) -> Optional[Any]:
        p = self.path_for(name)
        if not p.exists():
            return None
        try:
            return json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Cannot read %s, treating it as empty: %s", p, e)
            return None

    def write_atomic(self, name: str, data: Any) -> Path:
        path = self.path_for(name)
        _ensure_dir(path.parent)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, path)
        return path

    def delete(self, name: str) -> bool:
        p = self.path_for(name)
        try:
            p.unlink()
            return True
        except FileNotFoundError:
            return False

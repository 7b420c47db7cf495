import os
import shutil
import tempfile
from pathlib import Path

from .time import utc_now_iso


def safe_unlink(path: os.PathLike[str] | str) -> None:
    try:
        Path(path).unlink(missing_ok=True)
    except OSError:
        return


def safe_rmtree(path: Path) -> None:
    try:
        if Path(path).exists():
            shutil.rmtree(path)
    except OSError:
        pass


def fsync_dir(parent: Path) -> None:
    """
    Flush the directory entry after an atomic rename.
    """
    fd: int | None = None
    try:
        fd = os.open(parent, os.O_RDONLY)
        os.fsync(fd)
    finally:
        if fd is not None:
            os.close(fd)


def atomic_write_text(
    path: Path,
    text: str,
    *,
    encoding: str = "utf-8",
    newline: str | None = "\n",
    mode: int = 0o644,
) -> None:
    """
    Write `text` to `path` so that readers only ever see a complete file.

    The temp file lives next to the target so os.replace stays on one
    filesystem; contents are fsync'd before the rename.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd: int | None = None
    tmp_path: Path | None = None

    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.",
            suffix=".tmp",
            dir=str(path.parent),
            text=True,
        )
        tmp_path = Path(tmp_name)

        with os.fdopen(fd, "w", encoding=encoding, newline=newline) as f:
            fd = None
            f.write(text)
            f.flush()
            os.fsync(f.fileno())

        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
        fsync_dir(path.parent)
    finally:
        if fd is not None:
            os.close(fd)
        if tmp_path is not None and tmp_path.exists():
            safe_unlink(tmp_path)


def make_tmp_dir_for(final_dir: Path) -> Path:
    """
    Create a temp dir beside final_dir so the later rename is atomic.
    """
    final_dir = Path(final_dir)
    final_dir.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.mkdtemp(prefix=f".{final_dir.name}.tmp.", dir=str(final_dir.parent))
    return Path(tmp)


def atomic_dir_swap(final_dir: Path, tmp_dir: Path) -> None:
    """
    Replace final_dir with tmp_dir, restoring the old directory if the
    rename fails.
    """
    final_dir = Path(final_dir)
    tmp_dir = Path(tmp_dir)
    parent = final_dir.parent
    parent.mkdir(parents=True, exist_ok=True)

    stamp = utc_now_iso().replace(":", "").replace("-", "").replace(".", "")
    backup_dir = parent / f"{final_dir.name}.old.{stamp}"

    if final_dir.exists():
        safe_rmtree(backup_dir)
        final_dir.rename(backup_dir)

    try:
        tmp_dir.rename(final_dir)
    except OSError:
        if backup_dir.exists() and not final_dir.exists():
            backup_dir.rename(final_dir)
        raise
    finally:
        safe_rmtree(backup_dir)

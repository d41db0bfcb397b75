"""Path safety checks and local filesystem helpers."""

from __future__ import annotations

from pathlib import Path, PurePosixPath, PureWindowsPath
import re
import shutil

from skillsync.exceptions import PathTraversalError


# Local layout, relative to the project base directory
SKILLSYNC_DIR = ".skillsync"
SKILLS_DIR = f"{SKILLSYNC_DIR}/skills"
CURATED_DIR_NAME = ".curated"
CURATED_SKILLS_DIR = f"{SKILLS_DIR}/{CURATED_DIR_NAME}"
LOCKFILE_NAME = "skillsync.lock"
CONFIG_FILE_NAME = "skillsync.yml"

_SEPARATORS = re.compile(r"[/\\]")


def validate_item_name(name: str) -> str:
    """Ensure a remote item name is a single, harmless path component.

    Args:
        name: Skill or directory name as reported by the remote

    Returns:
        The unchanged name

    Raises:
        PathTraversalError: If the name is empty, contains a separator or ``..``
    """
    if not name or name in (".", "..") or "\0" in name:
        msg = f"Invalid item name: {name!r}"
        raise PathTraversalError(msg)
    if _SEPARATORS.search(name) or ".." in name:
        msg = f"Item name {name!r} contains path traversal characters"
        raise PathTraversalError(msg)
    return name


def check_path_traversal(
    relative_path: str,
    intended_root: Path | str,
    *,
    allow_root: bool = False,
) -> Path:
    """Verify that a relative path stays inside its intended root after joining.

    Any ``..`` segment is rejected, even if it would not escape the root.

    Args:
        relative_path: Path relative to the root (``/`` or ``\\`` separated)
        intended_root: Directory the path must stay within
        allow_root: Whether a path resolving to the root itself is acceptable

    Returns:
        The resolved absolute path

    Raises:
        PathTraversalError: If the path escapes (or equals) the root
    """
    if "\0" in relative_path or ".." in _SEPARATORS.split(relative_path):
        msg = f"Path traversal detected: {relative_path!r}"
        raise PathTraversalError(msg)
    if (
        PurePosixPath(relative_path).is_absolute()
        or PureWindowsPath(relative_path).is_absolute()
        or PureWindowsPath(relative_path).drive
    ):
        msg = f"Absolute paths are not allowed: {relative_path!r}"
        raise PathTraversalError(msg)

    root = Path(intended_root).resolve()
    resolved = (root / relative_path).resolve()
    if not resolved.is_relative_to(root) or (resolved == root and not allow_root):
        msg = f"Path traversal detected: {relative_path!r}"
        raise PathTraversalError(msg)
    return resolved


def write_file_content(path: Path, content: str) -> None:
    """Write text content, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def remove_directory(path: Path) -> None:
    """Remove a directory tree if it exists."""
    if path.is_dir():
        shutil.rmtree(path)


def list_subdirectory_names(path: Path) -> set[str]:
    """Names of the immediate subdirectories of a directory (empty if missing)."""
    if not path.is_dir():
        return set()
    return {child.name for child in path.iterdir() if child.is_dir()}


def publish_directory(staging: Path, target: Path) -> None:
    """Move a fully written staging directory into its final place."""
    remove_directory(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    staging.rename(target)


def relative_remote_path(file_path: str, dir_path: str) -> str:
    """Path of a remote file relative to a remote directory.

    Files outside the directory come back with a leading ``..`` segment so
    that check_path_traversal rejects them.
    """
    base = dir_path.strip("/")
    if base in ("", "."):
        return file_path
    prefix = base + "/"
    if not file_path.startswith(prefix):
        return f"../{file_path}"
    return file_path.removeprefix(prefix)

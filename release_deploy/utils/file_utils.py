# release_deploy/utils/file_utils.py
"""File operation utilities"""

import logging
import os
import shutil
import tarfile
from pathlib import Path
from typing import Iterable, Optional, Set, Union

from ..constants import ARCHIVE_SUFFIXES

logger = logging.getLogger(__name__)


def detect_archive_compression(file_path: Path) -> Optional[str]:
    """
    Detect tar compression from suffix, then from magic bytes

    Args:
        file_path: Path to file

    Returns:
        tarfile compression name ("gz", "bz2", "xz" or "" for plain tar),
        or None if the file is not a recognised archive
    """
    if not file_path.is_file():
        return None

    name_lower = file_path.name.lower()
    for suffix, compression in ARCHIVE_SUFFIXES.items():
        if name_lower.endswith(suffix):
            return compression

    # Try to detect from content
    try:
        with open(file_path, 'rb') as f:
            header = f.read(512)
    except OSError:
        return None

    if header.startswith(b'\x1f\x8b'):
        return "gz"
    if header.startswith(b'BZh'):
        return "bz2"
    if header.startswith(b'\xfd7zXZ\x00'):
        return "xz"
    if len(header) >= 262 and header[257:262] == b'ustar':
        return ""
    return None


def _is_within(directory: Path, target: Path) -> bool:
    try:
        target.relative_to(directory)
        return True
    except ValueError:
        return False


def extract_archive(archive_path: Path,
                    extract_to: Path,
                    compression: Optional[str] = None) -> Path:
    """
    Extract a tar archive, refusing members that escape the destination

    Args:
        archive_path: Archive file path
        extract_to: Extraction directory
        compression: tarfile compression name (auto-detect if None)

    Returns:
        Path to extracted content
    """
    extract_to.mkdir(parents=True, exist_ok=True)
    destination = extract_to.resolve()
    mode = f"r:{compression}" if compression else "r:*"

    with tarfile.open(archive_path, mode) as tar:
        members = tar.getmembers()
        for member in members:
            target = (destination / member.name).resolve()
            if not _is_within(destination, target):
                raise tarfile.TarError(f"Archive member escapes destination: {member.name}")
            if member.issym() or member.islnk():
                link_base = target.parent if member.issym() else destination
                link_target = (link_base / member.linkname).resolve()
                if not _is_within(destination, link_target):
                    raise tarfile.TarError(f"Archive link escapes destination: {member.name}")
            if member.isdev():
                raise tarfile.TarError(f"Archive contains a device file: {member.name}")

        if hasattr(tarfile, "data_filter"):
            tar.extractall(destination, members=members, filter="data")
        else:
            tar.extractall(destination, members=members)

    return extract_to


def _remove_entry(path: Path) -> None:
    if path.is_symlink() or not path.is_dir():
        path.unlink()
    else:
        shutil.rmtree(path)


def mirror_directory(source: Path,
                     destination: Path,
                     exclude: Optional[Iterable[str]] = None,
                     delete: bool = True,
                     top_level_exclude: Optional[Iterable[str]] = None) -> None:
    """
    Make destination an exact copy of source

    Files are copied with their metadata, symlinks are recreated rather than
    followed, and entries that exist only in the destination are deleted.
    Names in exclude are neither copied nor deleted at any depth; names in
    top_level_exclude only directly under source.

    Args:
        source: Source directory
        destination: Destination directory
        exclude: Entry names to skip
        delete: Remove destination entries missing from source
        top_level_exclude: Entry names to skip at the top level only
    """
    excluded: Set[str] = set(exclude or ())
    skipped = excluded | set(top_level_exclude or ())
    destination.mkdir(parents=True, exist_ok=True)
    shutil.copystat(source, destination)

    source_names = {entry.name for entry in source.iterdir() if entry.name not in skipped}

    if delete:
        for entry in destination.iterdir():
            if entry.name in skipped or entry.name in source_names:
                continue
            _remove_entry(entry)

    for name in sorted(source_names):
        src = source / name
        dst = destination / name

        if src.is_symlink():
            if dst.is_symlink() or dst.exists():
                _remove_entry(dst)
            os.symlink(os.readlink(src), dst)
        elif src.is_dir():
            if dst.is_symlink() or (dst.exists() and not dst.is_dir()):
                _remove_entry(dst)
            mirror_directory(src, dst, excluded, delete)
        else:
            if dst.is_symlink() or dst.is_dir():
                _remove_entry(dst)
            shutil.copy2(src, dst)


def atomic_symlink(target: Union[str, Path], link: Path) -> Path:
    """
    Create or replace a symlink atomically

    A temporary link is created next to the final one and renamed over it,
    so readers see either the old or the new target.

    Args:
        target: Link target (stored as given, may be relative)
        link: Link path

    Returns:
        Path to the link
    """
    temp_link = link.with_name(f".{link.name}.tmp-{os.getpid()}")

    if temp_link.exists() or temp_link.is_symlink():
        temp_link.unlink()

    temp_link.symlink_to(target, target_is_directory=True)
    try:
        os.replace(temp_link, link)
    except OSError:
        if temp_link.is_symlink():
            temp_link.unlink()
        raise

    return link


def safe_remove(path: Path) -> bool:
    """
    Safely remove file or directory

    Args:
        path: Path to remove

    Returns:
        True if successful
    """
    try:
        _remove_entry(path)
        return True
    except OSError as e:
        logger.warning(f"Failed to remove {path}: {e}")
        return False


def copy_file(src: Path, dst: Path) -> Path:
    """
    Copy a file, replacing whatever is at the destination

    Args:
        src: Source file
        dst: Destination file

    Returns:
        Destination path
    """
    dst.parent.mkdir(parents=True, exist_ok=True)
    if dst.is_symlink() or dst.is_dir():
        _remove_entry(dst)
    shutil.copy2(src, dst)
    return dst


def format_size(size: int) -> str:
    """
    Format file size in human-readable format

    Args:
        size: Size in bytes

    Returns:
        Formatted size string
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} PB"


def calculate_directory_size(directory: Path) -> int:
    """
    Calculate total size of directory

    Args:
        directory: Directory path

    Returns:
        Total size in bytes
    """
    total_size = 0

    for path in directory.rglob('*'):
        if path.is_file() and not path.is_symlink():
            total_size += path.stat().st_size

    return total_size

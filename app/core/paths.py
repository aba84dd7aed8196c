# app/core/paths.py
"""
Helpers for slash-delimited logical paths.
"""
import posixpath
from typing import List, Tuple

SHARED_SEGMENT = "Shared"


def disk_path(*parts: str) -> str:
    """Join path parts into one normalized absolute logical path.

    >>> disk_path("/Documents/", "Reports", "q1.pdf")
    '/Documents/Reports/q1.pdf'
    >>> disk_path("/")
    '/'
    """
    joined = "/".join(part for part in parts if part)
    return posixpath.normpath("/" + joined.lstrip("/"))


def split_segments(path: str) -> List[str]:
    """Ordered non-empty segments of a path."""
    return [segment for segment in (path or "").split("/") if segment]


def split_parent(path: str) -> Tuple[str, str]:
    """Split ``/a/b/c`` into ``("/a/b", "c")``."""
    segments = split_segments(path)
    if not segments:
        return "/", ""
    return disk_path(*segments[:-1]), segments[-1]


def split_shared_scope(folder_path: str) -> Tuple[bool, str]:
    """Detect the ``/Shared`` prefix and return the path inside that scope.

    >>> split_shared_scope("/Shared/Team/Specs")
    (True, '/Team/Specs')
    >>> split_shared_scope("/Team")
    (False, '/Team')
    """
    segments = split_segments(folder_path)
    if segments and segments[0] == SHARED_SEGMENT:
        return True, disk_path(*segments[1:])
    return False, disk_path(*segments)


def path_depth(path: str) -> int:
    """Number of ``/``-separated parts, the way paths are compared when filtering and sorting."""
    return len((path or "").split("/"))

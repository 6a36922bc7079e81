# panel_cmdline/vfs_paths.py

import re

# Prefixes of paths that point into a virtual (remote or archive) filesystem.
VFS_PREFIXES = ("/#ftp:", "ftp://", "/#smb:", "smb://", "/#sh:", "sh://", "ssh://", "sftp://")

_URL_SCHEME = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.-]*://')
_CREDENTIALS = re.compile(r'^([^/:@]*):[^/@]*@')


def is_local_path(path: str) -> bool:
    """True unless the path addresses a VFS location such as 'ftp://host/dir' or '/#sh:host'."""
    if path.startswith("/#"):
        return False
    return _URL_SCHEME.match(path) is None


def strip_password(path: str) -> str:
    """Remove the password from a 'user:password@host' VFS path before it is displayed.

    Only the first VFS prefix found is considered, and only when the '@'
    comes before the first '/' of the remainder. The user name is kept.
    """
    for prefix in VFS_PREFIXES:
        idx = path.find(prefix)
        if idx == -1:
            continue
        start = idx + len(prefix)
        return path[:start] + _CREDENTIALS.sub(r'\1@', path[start:], count=1)
    return path

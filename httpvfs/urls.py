"""Mapping of virtual paths onto resource URLs."""

from urllib.parse import quote, urlsplit, urlunsplit


def split_path(path):
    return [s for s in path.split("/") if s]


def is_dir_path(path):
    return path.endswith("/") or not split_path(path)


def resolve(root, path):
    """Join ``path`` under the ``root`` URL.

    Redundant slashes in ``path`` are dropped. The result keeps a trailing
    slash when ``path`` ends with one or names the root itself, which is how
    the server tells directories from files.

    >>> resolve("http://127.0.0.1:5000/share/", "a//b/c.bin")
    'http://127.0.0.1:5000/share/a/b/c.bin'
    >>> resolve("http://127.0.0.1:5000", "a/b/")
    'http://127.0.0.1:5000/a/b/'
    """
    parts = urlsplit(root)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"invalid root url: {root!r}")

    segments = [quote(s) for s in split_path(path)]
    joined = parts.path.strip("/")
    if segments:
        joined = "/".join([joined] + segments) if joined else "/".join(segments)
    joined = "/" + joined
    if is_dir_path(path) and not joined.endswith("/"):
        joined += "/"

    return urlunsplit((parts.scheme, parts.netloc, joined, "", ""))

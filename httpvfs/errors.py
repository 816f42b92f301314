"""Errors raised by the remote filesystem."""

import errno


class HttpVFSError(OSError):
    pass


class TransportError(HttpVFSError):
    """A request failed at the HTTP level or never got an answer.

    ``status_code`` is None when the server could not be reached.
    """

    def __init__(self, message, status_code=None, url=None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    def __str__(self):
        if self.url:
            return f"{self.args[0]}: {self.url}"
        return str(self.args[0])


class InvalidOperationError(HttpVFSError):
    def __init__(self, message, url=None):
        super().__init__(errno.EINVAL, message, url)


class OffsetOutOfRangeError(HttpVFSError):
    def __init__(self, message, url=None):
        super().__init__(errno.EINVAL, message, url)


class ListingDecodeError(ValueError):
    pass


def not_found(url):
    return FileNotFoundError(errno.ENOENT, "No such file or directory", url)


def already_exists(url):
    return FileExistsError(errno.EEXIST, "File exists", url)


def status_text(response):
    return f"{response.status_code} {response.reason or ''}".strip()


def raise_for_status(response, url, missing_status=404, exists_status=None):
    """Translate a non-2xx response into the matching exception.

    ``missing_status`` means "does not exist" and ``exists_status`` is what a
    creation call answers for an entity that is already there. Anything else
    becomes a TransportError carrying the status line.
    """
    if 200 <= response.status_code < 300:
        return
    if missing_status is not None and response.status_code == missing_status:
        raise not_found(url)
    if exists_status is not None and response.status_code == exists_status:
        raise already_exists(url)
    raise TransportError(status_text(response), response.status_code, url)

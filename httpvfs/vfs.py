"""Path level filesystem over an HTTP file server.

HttpVFS owns the transport and the logger and builds path level operations
on top of file handles produced by an open function.
"""

import io
import logging

import requests

from .errors import TransportError, raise_for_status


def null_logger():
    # Not registered with logging.getLogger, so nothing process wide changes.
    logger = logging.Logger("httpvfs")
    logger.addHandler(logging.NullHandler())
    return logger


class HttpVFS:
    def __init__(self, root, session=None, logger=None, timeout=None, open_func=None):
        self.root = root.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.logger = logger if logger is not None else null_logger()
        self.timeout = timeout
        self.open_func = open_func

    def request(self, method, url, **kwargs):
        """Issue one request through the transport.

        Network level failures surface as TransportError. The status code is
        left to the caller.
        """
        kwargs.setdefault("timeout", self.timeout)
        try:
            resp = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            self.logger.warning("%s %s failed: %s", method, url, e)
            raise TransportError(str(e), url=url) from e
        self.logger.info("%s %s with status code: %d", method, url, resp.status_code)
        return resp

    def check(self, method, url, resp, **kwargs):
        """Raise the exception matching a failed response, logging it first."""
        try:
            raise_for_status(resp, url, **kwargs)
        except OSError as e:
            self.logger.warning("%s %s failed: %s", method, url, e)
            raise

    def open(self, path):
        if self.open_func is None:
            raise NotImplementedError("open is not implemented")
        return self.open_func(path)

    def stat(self, path):
        return self.open(path).stat()

    def exists(self, path):
        try:
            self.stat(path)
        except FileNotFoundError:
            return False
        return True

    def read_dir(self, path):
        return self.open(path).read_dir(-1)

    def read_file(self, path):
        buf = io.BytesIO()
        with self.open(path) as f:
            f.write_to(buf)
        return buf.getvalue()

    def write_file(self, path, data):
        with self.open(path) as f:
            return f.read_from(io.BytesIO(data))

    def online(self):
        try:
            resp = self.request("HEAD", self.root + "/")
        except TransportError:
            return False
        resp.close()
        return 200 <= resp.status_code < 300

"""In-memory dufs server plugged into requests as a transport adapter."""

import io
import json
import posixpath
from email.utils import formatdate
from http import HTTPStatus
from urllib.parse import unquote, urlsplit

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from httpvfs import DufsVFS

BASE = "http://dufs.test"
MTIME = 1700000000


class FakeDufs(BaseAdapter):
    """Just enough of dufs to exercise the client.

    Every request is recorded. ``failures`` maps (method, path) to a status
    answered instead of the normal response, ``offline`` makes every request
    fail at the connection level and ``file_headers`` overrides headers of
    file responses (a None value removes the header).
    """

    def __init__(self):
        super().__init__()
        self.files = {}
        self.dirs = {""}
        self.requests = []
        self.timeouts = []
        self.failures = {}
        self.file_headers = {}
        self.offline = False

    def put(self, path, data):
        key = path.strip("/")
        self.makedirs(posixpath.dirname(key))
        self.files[key] = bytearray(data)

    def makedirs(self, key):
        while key:
            self.dirs.add(key)
            key = posixpath.dirname(key)

    def methods(self):
        return [r.method for r in self.requests]

    def close(self):
        pass

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.requests.append(request)
        self.timeouts.append(timeout)
        if self.offline:
            raise requests.ConnectionError("connection refused", request=request)

        key = unquote(urlsplit(request.url).path).strip("/")
        status = self.failures.get((request.method, key))
        if status is not None:
            return self.response(request, status)

        handler = getattr(self, "do_" + request.method)
        return self.response(request, *handler(key, request))

    def response(self, request, status, headers=None, body=b""):
        resp = requests.Response()
        resp.status_code = status
        resp.reason = HTTPStatus(status).phrase
        resp.headers = CaseInsensitiveDict(headers or {})
        resp.raw = io.BytesIO(body)
        resp.url = request.url
        resp.request = request
        resp.encoding = None
        resp.connection = self
        return resp

    def body(self, request):
        body = request.body
        if body is None:
            return b""
        if isinstance(body, str):
            return body.encode()
        if isinstance(body, (bytes, bytearray)):
            return bytes(body)
        return b"".join(body)

    def index(self, key):
        paths = []
        for d in sorted(self.dirs):
            if d and posixpath.dirname(d) == key:
                paths.append({
                    "path_type": "Dir",
                    "name": posixpath.basename(d),
                    "mtime": MTIME * 1000,
                    "size": 0,
                })
        for f, data in sorted(self.files.items()):
            if posixpath.dirname(f) == key:
                paths.append({
                    "path_type": "File",
                    "name": posixpath.basename(f),
                    "mtime": MTIME * 1000,
                    "size": len(data),
                })
        return {
            "href": "/" + key,
            "kind": "Index",
            "uri_prefix": "/",
            "allow_upload": True,
            "allow_delete": True,
            "allow_search": False,
            "allow_archive": True,
            "dir_exists": True,
            "auth": False,
            "user": "",
            "paths": paths,
        }

    def do_GET(self, key, request, head=False):
        if key in self.dirs:
            body = json.dumps(self.index(key)).encode()
            headers = {
                "Content-Type": "application/json",
                "Cache-Control": "no-cache",
                "Content-Length": str(len(body)),
            }
            return 200, headers, b"" if head else body

        if key not in self.files:
            return 404, {}, b""

        data = bytes(self.files[key])
        headers = {
            "Content-Type": "application/octet-stream",
            "Content-Disposition": f'inline; filename="{posixpath.basename(key)}"',
            "Accept-Ranges": "bytes",
            "Last-Modified": formatdate(MTIME, usegmt=True),
            "Date": formatdate(MTIME + 60, usegmt=True),
        }
        status = 200
        range_header = request.headers.get("Range")
        if range_header and not head:
            start, end = range_header[len("bytes="):].split("-")
            start, end = int(start), min(int(end), len(data) - 1)
            if start >= len(data):
                return 416, {}, b""
            headers["Content-Range"] = f"bytes {start}-{end}/{len(data)}"
            data = data[start:end + 1]
            status = 206
        headers["Content-Length"] = str(len(data))
        for name, value in self.file_headers.items():
            headers.pop(name, None)
            if value is not None:
                headers[name] = value
        return status, headers, b"" if head else data

    def do_HEAD(self, key, request):
        return self.do_GET(key, request, head=True)

    def do_PUT(self, key, request):
        if key in self.dirs:
            return 403, {}, b""
        self.put(key, self.body(request))
        return 201, {}, b""

    def do_PATCH(self, key, request):
        if key not in self.files:
            return 404, {}, b""
        data = self.body(request)
        update_range = request.headers["x-update-range"]
        if update_range == "append":
            self.files[key] += data
        else:
            start, end = update_range[len("bytes="):].split("-")
            start, end = int(start), int(end)
            if end - start + 1 != len(data) or start > len(self.files[key]):
                return 416, {}, b""
            self.files[key][start:end + 1] = data
        return 204, {}, b""

    def do_MKCOL(self, key, request):
        if key in self.dirs or key in self.files:
            return 405, {}, b""
        self.makedirs(key)
        return 201, {}, b""

    def subtree(self, key):
        files = [f for f in self.files if f == key or f.startswith(key + "/")]
        dirs = [d for d in self.dirs if d == key or d.startswith(key + "/")]
        return files, dirs

    def do_DELETE(self, key, request):
        if key not in self.files and key not in self.dirs:
            return 404, {}, b""
        files, dirs = self.subtree(key)
        for f in files:
            del self.files[f]
        for d in dirs:
            self.dirs.discard(d)
        return 200, {}, b""

    def do_COPY(self, key, request, move=False):
        if key not in self.files and key not in self.dirs:
            return 404, {}, b""
        dest = unquote(urlsplit(request.headers["Destination"]).path).strip("/")
        files, dirs = self.subtree(key)
        for d in dirs:
            self.makedirs(dest + d[len(key):])
        for f in files:
            self.put(dest + f[len(key):], self.files[f])
        if move:
            for f in files:
                del self.files[f]
            for d in dirs:
                self.dirs.discard(d)
        return 201, {}, b""

    def do_MOVE(self, key, request):
        return self.do_COPY(key, request, move=True)


@pytest.fixture
def server():
    return FakeDufs()


@pytest.fixture
def session(server):
    session = requests.Session()
    session.mount(BASE, server)
    return session


@pytest.fixture
def fs(session):
    return DufsVFS(BASE, session=session)

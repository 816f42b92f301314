"""Configuration of a remote filesystem connection.

A configuration file is a YAML mapping, for example::

    root: http://127.0.0.1:5000/
    timeout: 30
    verify: true
    username: alice
    password: secret
    headers:
      User-Agent: httpvfs
    readonly: false
"""

from dataclasses import dataclass, field, fields

import requests
import yaml

from .dufs import DufsVFS


@dataclass
class VFSConfig:
    """Settings for connecting to a server.

    Attributes:
        root: URL of the served root directory.
        timeout: Per request timeout in seconds. None waits forever.
        verify: Verify TLS certificates.
        headers: Extra headers sent with every request.
        username: Basic auth user, handed to the transport.
        password: Basic auth password.
        readonly: Refuse mutating operations when mounted.
    """

    root: str
    timeout: float | None = None
    verify: bool = True
    headers: dict[str, str] = field(default_factory=dict)
    username: str | None = None
    password: str | None = None
    readonly: bool = False

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ValueError("configuration must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unexpected configuration keys: {unknown}")
        if not data.get("root"):
            raise ValueError("configuration requires 'root'")
        return cls(**data)

    def session(self):
        session = requests.Session()
        session.verify = self.verify
        session.headers.update(self.headers)
        if self.username is not None:
            session.auth = (self.username, self.password or "")
        return session


def load_config(path):
    with open(path, "r") as f:
        data = yaml.load(f, Loader=yaml.FullLoader)
    return VFSConfig.from_dict(data or {})


def connect(config, logger=None):
    return DufsVFS(
        config.root,
        session=config.session(),
        logger=logger,
        timeout=config.timeout,
    )

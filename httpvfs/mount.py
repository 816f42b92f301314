#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""This program mounts a dufs server as a local file system."""

import errno
import io
import logging
import os
from argparse import ArgumentParser

import pyfuse3
import trio

from .config import connect, load_config
from .errors import InvalidOperationError, OffsetOutOfRangeError, TransportError

WRITE_FLAGS = os.O_APPEND | os.O_TRUNC | os.O_RDWR | os.O_WRONLY


def join(parent, name):
    return f"{parent}/{name}" if parent else name


class remotefs(pyfuse3.Operations):
    def __init__(self, vfs, readonly=False):
        super().__init__()
        self.vfs = vfs
        self.readonly = readonly

        # virtual paths are kept without leading or trailing slashes, "" is the root
        self.paths = {pyfuse3.ROOT_INODE: ""}
        self.inodes = {"": pyfuse3.ROOT_INODE}
        self.dirs = {pyfuse3.ROOT_INODE}
        self.next_inode = pyfuse3.ROOT_INODE + 1

        self.files = {}
        self.next_fh = 1

    def call(self, func, *args):
        try:
            return func(*args)
        except FileNotFoundError:
            raise pyfuse3.FUSEError(errno.ENOENT)
        except FileExistsError:
            raise pyfuse3.FUSEError(errno.EEXIST)
        except IsADirectoryError:
            raise pyfuse3.FUSEError(errno.EISDIR)
        except (InvalidOperationError, OffsetOutOfRangeError):
            raise pyfuse3.FUSEError(errno.EINVAL)
        except TransportError as e:
            logging.warning("%s failed: %s", func.__name__, e)
            raise pyfuse3.FUSEError(errno.EIO)

    def check_writable(self):
        if self.readonly:
            raise pyfuse3.FUSEError(errno.EROFS)

    def path(self, inode):
        try:
            return self.paths[inode]
        except KeyError:
            raise pyfuse3.FUSEError(errno.ENOENT)

    def target(self, inode):
        path = self.path(inode)
        return path + "/" if inode in self.dirs else path

    def child(self, parent_inode, name):
        return join(self.path(parent_inode), os.fsdecode(name))

    def inode(self, path, is_dir=False):
        inode = self.inodes.get(path)
        if inode is None:
            inode = self.next_inode
            self.next_inode += 1
            self.inodes[path] = inode
            self.paths[inode] = path
        if is_dir:
            self.dirs.add(inode)
        return inode

    def forget_path(self, path):
        inode = self.inodes.pop(path, None)
        if inode is not None:
            self.paths.pop(inode, None)
            self.dirs.discard(inode)

    def attributes(self, inode, info):
        entry = pyfuse3.EntryAttributes()
        entry.st_ino = inode
        entry.st_mode = info.st_mode
        entry.st_size = info.st_size
        entry.st_ctime_ns = info.st_mtime_ns
        entry.st_atime_ns = info.st_mtime_ns
        entry.st_mtime_ns = info.st_mtime_ns
        entry.st_gid = os.getgid()
        entry.st_uid = os.getuid()
        return entry

    def open_handle(self, file):
        fh = self.next_fh
        self.next_fh += 1
        self.files[fh] = file
        return fh

    def handle(self, fh):
        try:
            return self.files[fh]
        except KeyError:
            raise pyfuse3.FUSEError(errno.EBADF)

    async def getattr(self, inode, ctx=None):
        info = self.call(self.vfs.stat, self.target(inode))
        if info.is_dir:
            self.dirs.add(inode)
        return self.attributes(inode, info)

    async def lookup(self, parent_inode, name, ctx=None):
        path = self.child(parent_inode, name)
        info = self.call(self.vfs.stat, path)
        return self.attributes(self.inode(path, info.is_dir), info)

    async def opendir(self, inode, ctx):
        if inode not in self.dirs:
            raise pyfuse3.FUSEError(errno.ENOTDIR)
        return inode

    async def readdir(self, fh, start_id, token):
        parent = self.path(fh)
        entries = self.call(self.vfs.read_dir, self.target(fh))
        for i, entry in enumerate(entries[start_id:], start_id):
            inode = self.inode(join(parent, entry.name), entry.is_dir())
            if not pyfuse3.readdir_reply(
                token,
                os.fsencode(entry.name),
                self.attributes(inode, entry.stat()),
                i + 1,
            ):
                break

    async def open(self, inode, flags, ctx):
        if flags & WRITE_FLAGS:
            self.check_writable()
        file = self.vfs.open(self.path(inode))
        if flags & os.O_TRUNC:
            self.call(file.read_from, io.BytesIO(b""))
        return pyfuse3.FileInfo(fh=self.open_handle(file))

    async def create(self, parent_inode, name, mode, flags, ctx):
        self.check_writable()
        path = self.child(parent_inode, name)
        file = self.vfs.open(path)
        self.call(file.read_from, io.BytesIO(b""))
        info = self.call(file.stat)
        inode = self.inode(path)
        return (
            pyfuse3.FileInfo(fh=self.open_handle(file)),
            self.attributes(inode, info),
        )

    async def read(self, fh, off, size):
        logging.debug("read(%d, %d, %d)", fh, off, size)
        file = self.handle(fh)
        buf = bytearray(size)

        def read_at():
            try:
                return file.read_at(buf, off)
            except OffsetOutOfRangeError:
                # reading past the end is not an error for the kernel
                return 0
            except InvalidOperationError as e:
                raise IsADirectoryError(errno.EISDIR, "Is a directory", file.url) from e

        n = self.call(read_at)
        return bytes(buf[:n])

    async def write(self, fh, off, buf):
        logging.debug("write(%d, %d, %d)", fh, off, len(buf))
        self.check_writable()
        file = self.handle(fh)
        # the server can only append at the current end
        if off > self.call(file.cached_stat).size:
            raise pyfuse3.FUSEError(errno.EINVAL)
        return self.call(file.write_at, buf, off)

    async def release(self, fh):
        file = self.files.pop(fh, None)
        if file is not None:
            file.close()

    async def setattr(self, inode, attr, fields, fh, ctx):
        if fields.update_size:
            self.check_writable()
            if attr.st_size != 0:
                raise pyfuse3.FUSEError(errno.EOPNOTSUPP)
            self.call(self.vfs.open(self.path(inode)).read_from, io.BytesIO(b""))
        return await self.getattr(inode, ctx)

    async def mkdir(self, parent_inode, name, mode, ctx):
        self.check_writable()
        path = self.child(parent_inode, name)
        self.call(self.vfs.mkdir, path + "/")
        return await self.getattr(self.inode(path, is_dir=True), ctx)

    async def unlink(self, parent_inode, name, ctx):
        self.check_writable()
        path = self.child(parent_inode, name)
        self.call(self.vfs.remove, path)
        self.forget_path(path)

    async def rmdir(self, parent_inode, name, ctx):
        self.check_writable()
        path = self.child(parent_inode, name)
        self.call(self.vfs.remove, path + "/")
        self.forget_path(path)

    async def rename(self, parent_inode_old, name_old, parent_inode_new, name_new, flags, ctx):
        self.check_writable()
        if flags:
            raise pyfuse3.FUSEError(errno.EINVAL)
        old = self.child(parent_inode_old, name_old)
        new = self.child(parent_inode_new, name_new)
        is_dir = self.inodes.get(old) in self.dirs
        suffix = "/" if is_dir else ""
        self.call(self.vfs.rename, old + suffix, new + suffix)
        self.forget_path(old)
        self.forget_path(new)
        self.inode(new, is_dir)


def init_logging(debug=False):
    formatter = logging.Formatter(
        "%(asctime)s.%(msecs)03d %(threadName)s: " "[%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root_logger = logging.getLogger()
    if debug:
        handler.setLevel(logging.DEBUG)
        root_logger.setLevel(logging.DEBUG)
    else:
        handler.setLevel(logging.INFO)
        root_logger.setLevel(logging.INFO)
    root_logger.addHandler(handler)


def parse_args(args=None):
    parser = ArgumentParser()
    parser.add_argument(
        "config", type=str, help="YAML file describing the server to mount",
    )
    parser.add_argument("mountpoint", type=str, help="Where to mount the file system")
    parser.add_argument(
        "--debug", action="store_true", default=False, help="Enable debugging output"
    )
    parser.add_argument(
        "--readonly", action="store_true", default=False, help="Refuse every write"
    )

    return parser.parse_args(args)


def main():
    options = parse_args()
    init_logging(options.debug)

    config = load_config(options.config)
    vfs = connect(config, logger=logging.getLogger("httpvfs"))
    if not vfs.online():
        logging.warning("Server %s is not reachable", config.root)

    fs = remotefs(vfs, readonly=options.readonly or config.readonly)
    fuse_options = set(pyfuse3.default_options)
    fuse_options.add("fsname=httpvfs")

    if options.debug:
        fuse_options.add("debug")
    pyfuse3.init(fs, options.mountpoint, fuse_options)
    try:
        trio.run(pyfuse3.main)
    finally:
        pyfuse3.close(unmount=True)


if __name__ == "__main__":
    main()

"""Tests for mapping virtual paths to resource URLs."""

import pytest

from httpvfs import resolve

ROOT = "http://127.0.0.1:5000"


class TestResolve:
    def test_simple_file(self):
        assert resolve(ROOT, "a.bin") == "http://127.0.0.1:5000/a.bin"

    def test_redundant_slashes_collapse(self):
        assert resolve(ROOT, "a//b///c.bin") == resolve(ROOT, "a/b/c.bin")

    def test_directory_keeps_trailing_slash(self):
        assert resolve(ROOT, "a/b/") == "http://127.0.0.1:5000/a/b/"
        assert resolve(ROOT, "a//b//") == "http://127.0.0.1:5000/a/b/"

    def test_root_is_a_directory(self):
        assert resolve(ROOT, "") == "http://127.0.0.1:5000/"
        assert resolve(ROOT, "/") == "http://127.0.0.1:5000/"
        assert resolve(ROOT + "/", "//") == "http://127.0.0.1:5000/"

    def test_leading_slash_does_not_make_a_directory(self):
        assert resolve(ROOT, "/a.bin") == "http://127.0.0.1:5000/a.bin"

    def test_root_with_path_prefix(self):
        assert resolve(ROOT + "/share/", "a.bin") == "http://127.0.0.1:5000/share/a.bin"
        assert resolve(ROOT + "/share", "") == "http://127.0.0.1:5000/share/"

    def test_segments_are_quoted(self):
        url = resolve(ROOT, "test-dir-中文/with space/")
        assert url == "http://127.0.0.1:5000/test-dir-%E4%B8%AD%E6%96%87/with%20space/"

    @pytest.mark.parametrize("root", ["", "127.0.0.1:5000", "/just/a/path"])
    def test_malformed_root(self, root):
        with pytest.raises(ValueError):
            resolve(root, "a.bin")

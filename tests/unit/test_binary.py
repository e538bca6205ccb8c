"""Unit tests for binary detection."""

import pytest

from ctxpack.utils import detect_binary, is_binary_content, is_binary_extension


class TestBinaryDetection:
    @pytest.mark.parametrize("name", ["logo.PNG", "archive.tar", "lib.so", "data.sqlite3", "tool.phar"])
    def test_binary_extensions(self, name):
        assert is_binary_extension(name)

    @pytest.mark.parametrize("name", ["readme.md", "main.py", "icon.svg", "Makefile"])
    def test_text_extensions(self, name):
        assert not is_binary_extension(name)

    def test_null_byte(self):
        assert is_binary_content(b"abc\x00def")

    def test_utf8_text(self):
        assert not is_binary_content("naïve café, 東京\n".encode("utf-8"))

    def test_sample_cut_inside_character(self):
        content = ("a" * 8191 + "é").encode("utf-8")
        assert not is_binary_content(content)

    def test_mostly_high_bytes(self):
        assert is_binary_content(bytes(range(128, 256)) * 4)

    def test_latin1_text_is_text(self):
        assert not is_binary_content("plain text with one caf\xe9\n".encode("latin-1"))

    def test_empty(self):
        assert not is_binary_content(b"")

    def test_detect_binary_prefers_extension(self):
        assert detect_binary("image.png", b"looks like text")
        assert not detect_binary("notes.txt", b"looks like text")

# =============================================================================
# Unit Tests — File Storage and Text Extraction
# =============================================================================
#
# Docling itself is not run: the converter is replaced by a stub that
# yields pre-built items, so these tests stay fast and offline.
# =============================================================================

from __future__ import annotations

import re
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from docling_core.types.doc.labels import DocItemLabel

from lifedesk.config import settings
from lifedesk.services import parser, storage
from lifedesk.services.parser import UnsupportedFileTypeError, extract_text


class TestStorage:
    """Tests for the local storage area."""

    @pytest.fixture(autouse=True)
    def _storage_dir(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "storage_dir", str(tmp_path))
        self.root = tmp_path

    def test_key_format(self):
        key = storage.make_storage_key("Report.PDF")
        assert re.fullmatch(r"documents/\d{13}-[a-z0-9]{11}\.pdf", key)

    def test_key_without_extension(self):
        assert storage.make_storage_key("README").endswith(".bin")

    def test_keys_are_unique(self):
        assert storage.make_storage_key("a.txt") != storage.make_storage_key("a.txt")

    def test_save_and_delete(self):
        key = storage.save_upload(b"hello", "hello.txt")
        assert (self.root / key).read_bytes() == b"hello"
        assert storage.delete_file(key) is True
        assert not (self.root / key).exists()

    def test_delete_missing_file(self):
        assert storage.delete_file("documents/gone.txt") is False

    def test_rejects_escaping_key(self):
        with pytest.raises(ValueError):
            storage.resolve("../outside.txt")


class TestTypeDetection:
    """Tests for upload type detection."""

    def test_pdf_by_mime(self):
        assert parser.is_docling_type("application/pdf", "x")

    def test_docx_by_extension(self):
        assert parser.is_docling_type(None, "letter.DOCX")

    def test_text_by_mime(self):
        assert parser.is_text_type("text/html", "page")

    @pytest.mark.parametrize("name", ["a.txt", "b.md", "c.csv", "d.json"])
    def test_text_by_extension(self, name):
        assert parser.is_text_type("application/octet-stream", name)

    def test_image_is_neither(self):
        assert not parser.is_docling_type("image/png", "photo.png")
        assert not parser.is_text_type("image/png", "photo.png")


class TestExtractText:
    """Tests for text extraction."""

    def test_plain_text(self):
        assert extract_text("Grüße".encode(), "greeting.txt", "text/plain") == "Grüße"

    def test_invalid_utf8_is_replaced(self):
        assert extract_text(b"ok \xff", "bad.txt", "text/plain") == "ok �"

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedFileTypeError):
            extract_text(b"\x89PNG", "photo.png", "image/png")

    def test_docling_items_joined(self):
        table = MagicMock()
        table.label = DocItemLabel.TABLE
        table.export_to_markdown.return_value = "| a | b |"
        items = [
            (SimpleNamespace(label=DocItemLabel.TITLE, text="Lease"), 0),
            (SimpleNamespace(label=DocItemLabel.TEXT, text="  Rent is due monthly. "), 1),
            (SimpleNamespace(label=DocItemLabel.PICTURE, text="ignored"), 1),
            (table, 1),
        ]
        converter = MagicMock()
        converter.convert.return_value.document.iterate_items.return_value = items

        with patch.object(parser, "_get_converter", return_value=converter):
            text = extract_text(b"%PDF-1.7", "lease.pdf", "application/pdf")

        assert text == "Lease\n\nRent is due monthly.\n\n| a | b |"

    def test_docling_failure_wrapped(self):
        converter = MagicMock()
        converter.convert.side_effect = Exception("corrupt xref table")

        with patch.object(parser, "_get_converter", return_value=converter):
            with pytest.raises(RuntimeError, match="corrupt xref table"):
                extract_text(b"%PDF", "broken.pdf", "application/pdf")

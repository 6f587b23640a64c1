"""
Tests for the Blob and FormData body types.
"""

from __future__ import annotations

import pytest

from functions_do import Blob, FormData


class TestBlob:
    """Tests for Blob."""

    def test_size_and_bytes(self):
        blob = Blob(b"abc", "text/plain")

        assert blob.size == 3
        assert bytes(blob) == b"abc"

    def test_text(self):
        assert Blob("héllo".encode("utf-8")).text() == "héllo"
        assert Blob("héllo".encode("latin-1")).text("latin-1") == "héllo"


class TestFormData:
    """Tests for FormData."""

    def test_append_keeps_every_value(self):
        form = FormData()
        form.append("tag", "a")
        form.append("tag", "b")

        assert form.get_all("tag") == ["a", "b"]
        assert form.get("tag") == "a"
        assert len(form) == 2

    def test_set_replaces_values(self):
        form = FormData()
        form.append("tag", "a")
        form.append("tag", "b")
        form.append("title", "report")

        form.set("tag", "c")

        assert form.get_all("tag") == ["c"]
        assert list(form) == [("title", "report"), ("tag", "c")]

    def test_delete(self):
        form = FormData({"tag": "a", "title": "report"})

        form.delete("tag")

        assert "tag" not in form
        assert form.get("tag") is None
        assert "title" in form

    def test_bytes_without_filename_get_default_name(self):
        form = FormData()
        form.append("file", b"data")

        [field] = form.fields()
        assert field.filename == "blob"

    def test_httpx_files_rendering(self):
        form = FormData()
        form.append("title", "report")
        form.append("file", b"%PDF", filename="r.pdf", content_type="application/pdf")

        assert form.to_httpx_files() == [
            ("title", (None, "report", None)),
            ("file", ("r.pdf", b"%PDF", "application/pdf")),
        ]

    def test_equality(self):
        assert FormData({"a": "1"}) == FormData({"a": "1"})
        assert FormData({"a": "1"}) != FormData({"a": "2"})

    def test_parse_rejects_other_types(self):
        with pytest.raises(ValueError):
            FormData.parse(b"{}", "application/json")

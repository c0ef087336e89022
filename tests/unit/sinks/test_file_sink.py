"""Unit tests for sinks.file_sink module."""

import os
from contextlib import contextmanager

import pytest
import yaml

from confluence_exporter.confluence_client.errors import NetworkError
from confluence_exporter.models import Attachment
from confluence_exporter.sinks import FileSink, SinkError
from tests.fixtures.sample_pages import make_converted


class FakeAttachmentAPI:
    """Serves attachment bytes by file name; an Exception value fails the download."""

    def __init__(self, payloads):
        self.payloads = payloads
        self.downloaded = []

    @contextmanager
    def download_attachment(self, attachment):
        payload = self.payloads[attachment.file_name]
        if isinstance(payload, Exception):
            raise payload
        self.downloaded.append(attachment.file_name)
        yield iter([payload[:3], payload[3:]])


def _read(path):
    with open(path, encoding='utf-8') as f:
        return f.read()


class TestPagePaths:
    """Test cases for page file layout."""

    def test_writes_under_scope_directory(self, tmp_path, converted_page):
        sink = FileSink(str(tmp_path))

        with sink:
            sink.save_page(converted_page, "TEAM")

        path = tmp_path / "TEAM" / "Release_Notes.md"
        assert path.exists()
        assert _read(path) == "# Release Notes\n\nShipped.\n"

    def test_hostile_names_sanitized(self, tmp_path):
        sink = FileSink(str(tmp_path))
        page = make_converted("7", "Client/Server: Q&A?")

        path = sink.page_path(page, "R&D / Ops")

        assert path == os.path.join(str(tmp_path), "R&D_-_Ops", "Client-Server-_Q&A-.md")

    def test_resave_overwrites(self, tmp_path):
        sink = FileSink(str(tmp_path))
        sink.initialize()

        sink.save_page(make_converted("1", "Notes", "first\n"), "TEAM")
        sink.save_page(make_converted("1", "Notes", "second\n"), "TEAM")
        sink.close()

        assert _read(tmp_path / "TEAM" / "Notes.md") == "second\n"
        assert os.listdir(tmp_path / "TEAM") == ["Notes.md"]

    def test_no_temp_files_left(self, tmp_path, converted_page):
        with FileSink(str(tmp_path)) as sink:
            sink.save_page(converted_page, "TEAM")

        leftovers = [name for name in os.listdir(tmp_path / "TEAM") if name.endswith('.tmp')]
        assert leftovers == []

    def test_initialize_creates_output_dir(self, tmp_path):
        output_dir = tmp_path / "nested" / "out"

        FileSink(str(output_dir)).initialize()

        assert output_dir.is_dir()

    def test_unwritable_output_dir(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        sink = FileSink(str(blocker / "out"))

        with pytest.raises(SinkError) as exc_info:
            sink.initialize()

        assert exc_info.value.operation == 'create_directory'


class TestFrontMatter:
    """Test cases for optional YAML front matter."""

    def test_front_matter_prefix(self, tmp_path, converted_page):
        sink = FileSink(str(tmp_path), include_front_matter=True)

        with sink:
            sink.save_page(converted_page, "TEAM")

        content = _read(tmp_path / "TEAM" / "Release_Notes.md")
        assert content.startswith("---\n")
        _, front_matter, body = content.split("---\n", 2)
        metadata = yaml.safe_load(front_matter)
        assert metadata['title'] == "Release Notes"
        assert metadata['uid'] == converted_page.uid
        assert metadata['page_id'] == "1001"
        assert metadata['link'] == converted_page.link
        assert body == "\n# Release Notes\n\nShipped.\n"


class TestAttachments:
    """Test cases for attachment downloads."""

    def test_requires_api(self, tmp_path):
        with pytest.raises(ValueError):
            FileSink(str(tmp_path), include_attachments=True)

    def test_downloads_next_to_page(self, tmp_path):
        api = FakeAttachmentAPI({"diagram.png": b"PNGDATA"})
        sink = FileSink(str(tmp_path), api=api, include_attachments=True)
        page = make_converted(
            "1", "Design Doc",
            attachments=(Attachment("att1", "diagram.png", "diagram.png", download_url="/download/1"),),
        )

        with sink:
            sink.save_page(page, "TEAM")

        attachment_path = tmp_path / "TEAM" / "attachments" / "Design_Doc" / "diagram.png"
        assert attachment_path.read_bytes() == b"PNGDATA"
        assert (tmp_path / "TEAM" / "Design_Doc.md").exists()

    def test_partial_failure_reported_after_all_attempts(self, tmp_path):
        api = FakeAttachmentAPI({
            "a.txt": b"alpha",
            "b.txt": NetworkError("/download/b", "timed out"),
            "c.txt": b"gamma",
        })
        sink = FileSink(str(tmp_path), api=api, include_attachments=True)
        page = make_converted(
            "1", "Files",
            attachments=tuple(Attachment(f"att-{name}", name, name) for name in ("a.txt", "b.txt", "c.txt")),
        )

        with pytest.raises(SinkError) as exc_info:
            sink.save_page(page, "TEAM")

        assert exc_info.value.operation == 'download_attachments'
        assert "1 of 3" in str(exc_info.value)
        assert api.downloaded == ["a.txt", "c.txt"]
        assert (tmp_path / "TEAM" / "Files.md").exists()

    def test_disabled_skips_downloads(self, tmp_path):
        api = FakeAttachmentAPI({})
        sink = FileSink(str(tmp_path), api=api)
        page = make_converted("1", "Files", attachments=(Attachment("att1", "a.txt", "a.txt"),))

        with sink:
            sink.save_page(page, "TEAM")

        assert api.downloaded == []
        assert not (tmp_path / "TEAM" / "attachments").exists()

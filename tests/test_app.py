from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from docuarchive.api.archives import get_archive_parser
from docuarchive.archive import ArchiveParser, SignatureScanCodec
from docuarchive.main import app


@pytest.fixture
def client():
    app.dependency_overrides[get_archive_parser] = lambda: ArchiveParser(codec=SignatureScanCodec())
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def archive_bytes(make_archive) -> bytes:
    return make_archive(
        [
            ({"FILENAME": "notes.txt", "TYPE": "PLAINTEXT", "GUID": "g-1"}, b"\x00\x01Plain text content"),
            ({"FILENAME": "form.xml", "DOCTYPE": "FORM"}, b"\x02<FORMINFO><a/></FORMINFO>**"),
            ({"FILENAME": "../evil.bin"}, b"\x00\x01\x02"),
        ]
    )


def test_read_root_returns_ok() -> None:
    response = TestClient(app).get("/")
    assert response.status_code == 200
    assert response.text == "ok"


def test_healthz_returns_ok() -> None:
    assert TestClient(app).get("/healthz").text == "ok"


def test_parse_endpoint_lists_records(client: TestClient, archive_bytes: bytes) -> None:
    response = client.post("/archives/parse", files={"file": ("sample.env", archive_bytes)})

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "sample.env"
    assert [record["filename"] for record in body["records"]] == ["notes.txt", "form.xml", "../evil.bin"]
    first = body["records"][0]
    assert first["kind"] == "PLAINTEXT"
    assert first["size"] == len("Plain text content")
    assert first["guid"] == "g-1"
    assert first["start_line"] == 2


def test_parse_endpoint_rejects_empty_upload(client: TestClient) -> None:
    response = client.post("/archives/parse", files={"file": ("empty.env", b"")})
    assert response.status_code == 400


def test_extract_endpoint_writes_files(
    client: TestClient, archive_bytes: bytes, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("DOCUARCHIVE_OUTPUT_DIR", str(tmp_path / "output"))

    response = client.post("/archives/session-1/extract", files={"file": ("sample.env", archive_bytes)})

    assert response.status_code == 200
    body = response.json()
    destination = Path(body["destination"])
    assert destination.parent == (tmp_path / "output").resolve()
    assert sorted(item["filename"] for item in body["written"]) == ["__evil.bin", "form.xml", "notes.txt"]
    assert (destination / "form.xml").read_text(encoding="latin-1") == "<FORMINFO><a/></FORMINFO>"


def test_extract_endpoint_reports_invalid_destination(
    client: TestClient, archive_bytes: bytes, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    blocker = tmp_path / "output"
    blocker.write_text("not a directory")
    monkeypatch.setenv("DOCUARCHIVE_OUTPUT_DIR", str(blocker))

    response = client.post("/archives/session-1/extract", files={"file": ("sample.env", archive_bytes)})

    assert response.status_code == 500

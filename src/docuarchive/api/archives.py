"""API router exposing parse and extract endpoints for uploaded archives."""
from __future__ import annotations

import time
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from ..archive import ArchiveParser, ArchiveParserConfig, DiskExtractor, EmbeddedFileRecord, sanitize_filename
from ..config import get_settings
from ..errors import DestinationInvalidError

router = APIRouter(prefix="/archives", tags=["archives"])


class RecordSummary(BaseModel):
    """Metadata of one embedded file; payload bytes are not returned."""

    filename: str
    extension: str
    type: str
    doctype: str
    kind: str
    sha1: str
    guid: str
    env_guid: str
    size: int
    start_line: Optional[int] = None
    end_line: Optional[int] = None


class ParseResponse(BaseModel):
    source: str
    records: list[RecordSummary]
    duration_seconds: float


class ExtractedFileItem(BaseModel):
    filename: str
    size: int


class SkippedFileItem(BaseModel):
    filename: str
    reason: str


class ExtractResponse(BaseModel):
    session_id: str
    destination: str
    written: list[ExtractedFileItem]
    skipped: list[SkippedFileItem]
    failed: list[SkippedFileItem]
    duration_seconds: float


def get_archive_parser() -> ArchiveParser:
    return ArchiveParser(ArchiveParserConfig.from_settings())


def get_disk_extractor() -> DiskExtractor:
    return DiskExtractor()


def _summarise(record: EmbeddedFileRecord) -> RecordSummary:
    return RecordSummary(
        filename=record.filename,
        extension=record.extension,
        type=record.type,
        doctype=record.doctype,
        kind=record.kind.value,
        sha1=record.sha1,
        guid=record.guid,
        env_guid=record.env_guid,
        size=record.size,
        start_line=record.start_line,
        end_line=record.end_line,
    )


async def _read_upload(upload: UploadFile) -> bytes:
    data = await upload.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded archive is empty")
    return data


@router.post("/parse", response_model=ParseResponse)
async def parse_archive(
    file: UploadFile = File(...),
    parser: ArchiveParser = Depends(get_archive_parser),
) -> ParseResponse:
    """Parse an uploaded archive and list the embedded files it contains."""

    started = time.perf_counter()
    data = await _read_upload(file)
    records = parser.parse_bytes(data)
    return ParseResponse(
        source=file.filename or "upload",
        records=[_summarise(record) for record in records],
        duration_seconds=time.perf_counter() - started,
    )


@router.post("/{session_id}/extract", response_model=ExtractResponse)
async def extract_archive(
    session_id: str,
    file: UploadFile = File(...),
    parser: ArchiveParser = Depends(get_archive_parser),
    extractor: DiskExtractor = Depends(get_disk_extractor),
) -> ExtractResponse:
    """Parse an uploaded archive and write its embedded files for ``session_id``."""

    started = time.perf_counter()
    data = await _read_upload(file)
    records = parser.parse_bytes(data)
    safe_session = sanitize_filename(session_id, "session")
    destination = get_settings().output_dir / safe_session
    try:
        report = extractor.extract(records, destination)
    except DestinationInvalidError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return ExtractResponse(
        session_id=safe_session,
        destination=str(report.destination),
        written=[ExtractedFileItem(filename=item.filename, size=item.size) for item in report.written],
        skipped=[SkippedFileItem(filename=item.filename, reason=item.reason) for item in report.skipped],
        failed=[SkippedFileItem(filename=item.filename, reason=item.reason) for item in report.failed],
        duration_seconds=time.perf_counter() - started,
    )

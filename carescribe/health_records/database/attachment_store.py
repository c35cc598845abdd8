"""Transcripts and document metadata linked to appointments."""

from dataclasses import dataclass, field, replace
from datetime import datetime

from .record_store import Record, RecordStore


@dataclass
class Transcript(Record):
    id: str = ""
    appointment_id: str | None = None
    created_at: str | None = None
    title: str = ""
    lines: list[str] = field(default_factory=list)


@dataclass
class DocumentMeta(Record):
    id: str = ""
    appointment_id: str | None = None
    name: str = ""
    size_bytes: int = 0
    mime_type: str = "application/octet-stream"
    uploaded_at: str | None = None


class TranscriptStore(RecordStore):
    """Store for visit transcripts. Transcripts belong to their appointment."""

    KEY = "cs_transcripts"
    RECORD_TYPE = Transcript
    FIELDS = ["appointment_id", "title", "lines"]

    def create(self, record: Transcript) -> Transcript:
        record.created_at = record.created_at or datetime.now().isoformat()
        if not record.title:
            record.title = f"Visit transcript - {datetime.now():%Y-%m-%d %H:%M}"
        return super().create(record)

    def for_appointment(self, appointment_id: str) -> list[Transcript]:
        return [t for t in self._records if t.appointment_id == appointment_id]

    def delete_for_appointment(self, appointment_id: str) -> int:
        """Delete every transcript owned by an appointment. Returns the count."""
        remaining = [t for t in self._records if t.appointment_id != appointment_id]
        removed = len(self._records) - len(remaining)
        if removed:
            self._replace_all(remaining)
        return removed


class DocumentStore(RecordStore):
    """Store for uploaded document metadata. Documents outlive appointments."""

    KEY = "cs_documents"
    RECORD_TYPE = DocumentMeta
    FIELDS = ["appointment_id", "name"]

    def create(self, record: DocumentMeta) -> DocumentMeta:
        record.uploaded_at = record.uploaded_at or datetime.now().isoformat()
        return super().create(record)

    def attach(self, document_id: str, appointment_id: str) -> DocumentMeta | None:
        return self.update(document_id, {"appointment_id": appointment_id})

    def detach_from_appointment(self, appointment_id: str) -> int:
        """Unlink documents from an appointment without deleting them."""
        detached = 0
        records = []
        for doc in self._records:
            if doc.appointment_id == appointment_id:
                doc = replace(doc, appointment_id=None)
                detached += 1
            records.append(doc)
        if detached:
            self._replace_all(records)
        return detached

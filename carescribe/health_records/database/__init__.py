from .connection import get_connection, init_database
from .kv_store import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from .appointment_store import Appointment, AppointmentStore
from .medication_store import Medication, MedicationStore
from .activity_store import CustomEvent, ActivityStore
from .attachment_store import Transcript, TranscriptStore, DocumentMeta, DocumentStore

__all__ = [
    "get_connection", "init_database",
    "KeyValueStore", "MemoryKeyValueStore", "SQLiteKeyValueStore",
    "Appointment", "AppointmentStore",
    "Medication", "MedicationStore",
    "CustomEvent", "ActivityStore",
    "Transcript", "TranscriptStore",
    "DocumentMeta", "DocumentStore",
]

"""Seed the database with demo appointments, medications and activities."""

from datetime import datetime, timedelta

from carescribe import dates
from carescribe.health_records.database import (
    ActivityStore,
    Appointment,
    AppointmentStore,
    CustomEvent,
    DocumentMeta,
    DocumentStore,
    Medication,
    MedicationStore,
    SQLiteKeyValueStore,
    Transcript,
    TranscriptStore,
)


def mock_appointments(now: datetime) -> list[Appointment]:
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return [
        Appointment(
            id="apt-001",
            date=(today - timedelta(days=14, hours=-10)).isoformat(),
            doctor="Dr. Sarah Chen",
            specialty="General",
            reason="Annual physical",
            notes="Blood pressure slightly elevated. Recheck in 3 months.",
            diagnosis=["Mild hypertension"],
            instructions=["Reduce sodium", "Walk 30 minutes daily"],
        ),
        Appointment(
            id="lab-001",
            type="lab",
            date=(today - timedelta(days=10, hours=-8)).isoformat(),
            doctor="Dr. Sarah Chen",
            lab_type="Lipid panel",
            attached_provider_id="apt-001",
        ),
        Appointment(
            id="apt-002",
            date=(today + timedelta(days=1, hours=14, minutes=30)).isoformat(),
            doctor="Dr. Michael Rodriguez",
            specialty="Dermatology",
            reason="Skin check",
        ),
        Appointment(
            id="apt-003",
            date=(today + timedelta(days=21, hours=9)).isoformat(),
            doctor="Dr. Emily Watson",
            specialty="ENT",
            reason="Follow-up on sinus congestion",
        ),
    ]


def mock_medications(now: datetime) -> list[Medication]:
    start = dates.to_local_date_string(now - timedelta(days=14))
    return [
        Medication(
            id="med-001",
            name="Lisinopril",
            dosage="10mg",
            frequency="Once daily",
            frequency_type="daily",
            times=["08:00"],
            start_date=start,
            prescribed_by="Dr. Sarah Chen",
            appointment_id="apt-001",
            reason="Blood pressure",
        ),
        Medication(
            id="med-002",
            name="Vitamin D",
            dosage="2000 IU",
            frequency="Twice weekly",
            frequency_type="weekly",
            selected_days=[1, 4],
            start_date=start,
        ),
        Medication(
            id="med-003",
            name="Cetirizine",
            dosage="10mg",
            frequency="Morning and evening",
            frequency_type="daily",
            times=["08:00", "20:00"],
            start_date=dates.to_local_date_string(now),
            end_date=dates.to_local_date_string(now + timedelta(days=10)),
            reason="Seasonal allergies",
        ),
    ]


def mock_activities(now: datetime) -> list[CustomEvent]:
    return [
        CustomEvent(
            id="ce-001",
            title="Evening walk",
            description="30 minutes around the park",
            date=dates.to_local_date_string(now - timedelta(days=7)),
            time="18:30",
            frequency_type="daily",
        ),
        CustomEvent(
            id="ce-002",
            title="Physio exercises",
            date=dates.to_local_date_string(now),
            all_day=True,
            frequency_type="weekly",
            selected_days=[1, 3, 5],
        ),
    ]


def seed_database(db_path=None):
    """Seed the database with demo records, skipping ones that already exist."""
    now = dates.now()
    kv = SQLiteKeyValueStore(db_path)

    appointments = AppointmentStore(kv)
    medications = MedicationStore(kv)
    activities = ActivityStore(kv)
    transcripts = TranscriptStore(kv)
    documents = DocumentStore(kv)

    print("Creating appointments...")
    for apt in mock_appointments(now):
        if appointments.get(apt.id):
            print(f"  Skipping {apt.id} (already exists)")
        else:
            appointments.create(apt)
            print(f"  Created {apt.doctor if not apt.is_lab else apt.lab_type}")

    print("Creating medications...")
    for med in mock_medications(now):
        if medications.get(med.id):
            print(f"  Skipping {med.name} (already exists)")
        else:
            medications.create(med)
            print(f"  Created {med.name} {med.dosage}")

    print("Creating activities...")
    for event in mock_activities(now):
        if activities.get(event.id):
            print(f"  Skipping {event.title} (already exists)")
        else:
            activities.create(event)
            print(f"  Created {event.title}")

    if not transcripts.get("tr-001"):
        transcripts.create(Transcript(
            id="tr-001",
            appointment_id="apt-001",
            lines=[
                "Doctor: Your blood pressure is a little high today.",
                "Patient: Is that something to worry about?",
                "Doctor: Let's start a low dose and recheck in three months.",
            ],
        ))
    if not documents.get("doc-001"):
        documents.create(DocumentMeta(
            id="doc-001",
            appointment_id="apt-001",
            name="lab-results.pdf",
            size_bytes=182_044,
            mime_type="application/pdf",
        ))

    print("\nDatabase seeded successfully!")
    print(f"  - {len(appointments.list())} appointments")
    print(f"  - {len(medications.list())} medications")
    print(f"  - {len(activities.list())} activities")


if __name__ == "__main__":
    seed_database()

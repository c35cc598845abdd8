"""Tests for event payload validation."""

import pytest
from pydantic import ValidationError

from carescribe.payloads import (
    MedicationPayload,
    normalize_clock,
    normalize_date,
    parse_event_update,
    parse_new_event,
)


class TestNormalizers:
    """Tests for date and time normalization."""

    @pytest.mark.parametrize("value,expected", [
        ("10/19/2026", "2026-10-19"),
        ("1/5/2026", "2026-01-05"),
        ("10-19-2026", "2026-10-19"),
        ("2026-10-19", "2026-10-19"),
        ("", None),
        (None, None),
    ])
    def test_normalize_date(self, value, expected):
        assert normalize_date(value) == expected

    def test_normalize_clock(self):
        """Test times are zero-padded and invalid ones rejected."""
        assert normalize_clock("8:00") == "08:00"
        assert normalize_clock("20:15:00") == "20:15"
        assert normalize_clock(None) is None
        with pytest.raises(ValueError):
            normalize_clock("25:00")
        with pytest.raises(ValueError):
            normalize_clock("noon")


class TestMedicationPayload:
    """Tests for medication payloads."""

    def test_times_from_comma_string(self):
        """Test a comma-separated times string becomes a list."""
        payload = MedicationPayload(name="Aspirin", times="8:00, 20:00")
        assert payload.times == ["08:00", "20:00"]

    def test_invalid_time_rejected(self):
        """Test an impossible time of day fails validation."""
        with pytest.raises(ValidationError):
            MedicationPayload(name="Aspirin", times=["24:30"])

    def test_weekday_range(self):
        """Test weekdays must be Sunday (0) to Saturday (6)."""
        with pytest.raises(ValidationError):
            MedicationPayload(name="Aspirin", selected_days=[7])

    def test_frequency_type(self):
        """Test only daily, weekly and once are accepted."""
        with pytest.raises(ValidationError):
            MedicationPayload(name="Aspirin", frequency_type="monthly")

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            MedicationPayload(name="")


class TestParseEvents:
    """Tests for parse_new_event and parse_event_update."""

    def test_camel_case_keys(self):
        """Test the web client's camelCase keys are accepted."""
        event_type, data = parse_new_event({
            "type": "activity",
            "title": "Physio",
            "allDay": True,
            "selectedDays": [1, 3],
            "frequencyType": "weekly",
            "endDate": "12/31/2026",
        })
        assert event_type == "activity"
        assert data["all_day"] is True
        assert data["selected_days"] == [1, 3]
        assert data["end_date"] == "2026-12-31"

    def test_unset_fields_omitted(self):
        """Test new events only carry the fields that were given."""
        _, data = parse_new_event({"type": "medication", "name": "Aspirin"})
        assert data == {"type": "medication", "name": "Aspirin"}

    def test_update_keeps_only_given_keys(self):
        """Test updates do not require or fill in other fields."""
        event_type, data = parse_event_update({"type": "medication", "dosage": "20mg"})
        assert event_type == "medication"
        assert data["dosage"] == "20mg"
        assert "name" not in data
        assert "times" not in data

    def test_update_can_clear_end_date(self):
        """Test an explicit null survives an update."""
        _, data = parse_event_update({"type": "medication", "endDate": None})
        assert data["end_date"] is None

    def test_lab_type(self):
        """Test labs validate with the appointment model."""
        event_type, data = parse_new_event({"type": "lab", "labType": "CBC", "date": "2026-10-20T09:00:00"})
        assert event_type == "lab"
        assert data["lab_type"] == "CBC"

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            parse_new_event({"type": "podcast"})
        with pytest.raises(ValueError):
            parse_event_update({})

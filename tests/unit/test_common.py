"""Unit tests for common utils and the calendar export (pure functions only)."""
from datetime import datetime, timezone
import pytest

from gurmania.models.models import User
from gurmania.utils.calendar import fold_line, format_ics_date, workshop_ics
from gurmania.utils.common import display_name, iso_format, progress_percentage
from gurmania.utils.dates import utcnow
from gurmania.utils.errors import CertificateExistsError, GurmaniaError, MissingPrerequisitesError


@pytest.mark.unit
class TestIsoFormat:
    def test_appends_z(self):
        dt = datetime(2025, 1, 15, 12, 30, 0)
        assert iso_format(dt) == "2025-01-15T12:30:00Z"

    def test_none(self):
        assert iso_format(None) is None


@pytest.mark.unit
class TestDisplayName:
    def test_name_column(self):
        user = User(email="u@example.com", name="Ana", preferences=None)
        assert display_name(user) == "Ana"

    def test_preferences_name(self):
        user = User(email="u@example.com", preferences={"name": "Alice"})
        assert display_name(user) == "Alice"

    def test_fallback_email_prefix(self):
        user = User(email="chef@example.com", preferences=None)
        assert display_name(user) == "chef"

    def test_blank_name_fallback(self):
        user = User(email="test@test.com", name="  ", preferences={})
        assert display_name(user) == "test"


@pytest.mark.unit
class TestProgressPercentage:
    def test_rounds_to_one_decimal(self):
        assert progress_percentage(1, 3) == 33.3

    def test_no_lessons(self):
        assert progress_percentage(0, 0) == 0.0


@pytest.mark.unit
class TestWorkshopIcs:
    def test_format_date(self):
        assert format_ics_date(datetime(2025, 1, 15, 9, 5, 0)) == "20250115T090500Z"

    def test_event_fields(self):
        ics = workshop_ics(
            workshop_id="w1",
            title="Risotto, live",
            description="Bring rice\nand stock",
            start=datetime(2025, 1, 15, 18, 0, 0),
            end=datetime(2025, 1, 15, 19, 0, 0),
            join_url="http://localhost:3000/app/workshops/w1",
            now=datetime(2025, 1, 1, 0, 0, 0),
        )
        lines = ics.split("\r\n")
        assert lines[0] == "BEGIN:VCALENDAR"
        assert "PRODID:-//Gurmania//Workshops//EN" in lines
        assert "UID:w1@gurmania" in lines
        assert "DTSTAMP:20250101T000000Z" in lines
        assert "DTSTART:20250115T180000Z" in lines
        assert "DTEND:20250115T190000Z" in lines
        assert "SUMMARY:Risotto\\, live" in lines
        assert "DESCRIPTION:Bring rice and stock" in lines
        assert "URL:http://localhost:3000/app/workshops/w1" in lines
        assert ics.endswith("END:VCALENDAR\r\n")

    def test_default_description(self):
        ics = workshop_ics(
            workshop_id="w2",
            title="Bread",
            description=None,
            start=datetime(2025, 1, 15, 18, 0, 0),
            end=datetime(2025, 1, 15, 19, 0, 0),
            join_url="x",
        )
        assert "DESCRIPTION:Live workshop" in ics

    def test_short_line_untouched(self):
        assert fold_line("SUMMARY:Bread") == "SUMMARY:Bread"

    def test_long_line_folded_at_75_octets(self):
        line = "DESCRIPTION:" + "x" * 200
        physical = fold_line(line).split("\r\n")
        assert all(len(p.encode("utf-8")) <= 75 for p in physical)
        assert len(physical[0]) == 75
        assert all(p.startswith(" ") for p in physical[1:])
        assert "".join(p[1:] for p in physical[1:]) == line[75:]

    def test_folding_keeps_multibyte_characters_whole(self):
        line = "SUMMARY:" + "č" * 80
        physical = fold_line(line).split("\r\n")
        assert all(len(p.encode("utf-8")) <= 75 for p in physical)
        assert physical[0] + "".join(p[1:] for p in physical[1:]) == line

    def test_long_description_is_folded_in_export(self):
        ics = workshop_ics(
            workshop_id="w3",
            title="Sourdough",
            description="Feed the starter the night before. " * 5,
            start=datetime(2025, 1, 15, 18, 0, 0),
            end=datetime(2025, 1, 15, 19, 0, 0),
            join_url="x",
        )
        assert all(len(line.encode("utf-8")) <= 75 for line in ics.split("\r\n"))
        unfolded = ics.replace("\r\n ", "")
        assert "DESCRIPTION:" + "Feed the starter the night before. " * 4 in unfolded


@pytest.mark.unit
class TestUtcNow:
    def test_naive_and_close_to_utc(self):
        now = utcnow()
        assert now.tzinfo is None
        aware = datetime.now(timezone.utc).replace(tzinfo=None)
        assert abs((aware - now).total_seconds()) < 5


@pytest.mark.unit
class TestErrorPayloads:
    def test_base_error(self):
        error = GurmaniaError("Nope", extra={"completed": 1, "total": 3})
        assert error.status_code == 400
        assert error.to_payload() == {"error": "Nope", "detail": "Nope", "completed": 1, "total": 3}

    def test_missing_prerequisites(self):
        error = MissingPrerequisitesError("Finish first", ["Knife skills"])
        assert error.status_code == 403
        assert error.to_payload()["missing_lessons"] == ["Knife skills"]

    def test_certificate_exists_carries_record(self):
        error = CertificateExistsError("Already issued", certificate="record")
        assert error.status_code == 409
        assert error.certificate == "record"

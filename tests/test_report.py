import uuid
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from daycare.core.directory.schemas import ChildBrief, ClassroomBrief, StaffBrief
from daycare.core.incidents import report
from daycare.core.incidents.schemas import IncidentWithDetails
from daycare.core.organizations.schemas import OrganizationInfo

NOW = datetime(2025, 6, 10, 18, 0, tzinfo=timezone.utc)
SIGNATURE_DATA = "data:image/png;base64,iVBORw0KGgo="


def _organization(**overrides) -> OrganizationInfo:
    data = {
        "name": "Little Stars Daycare", "address": "123 Main St", "city": "Miami", "state": "FL",
        "zip": "33101", "phone": "(305) 555-0100", "email": None, "logo_url": None,
        "license_number": "C11MD1234",
    }
    data.update(overrides)
    return OrganizationInfo(**data)


def _incident(**overrides) -> IncidentWithDetails:
    incident_id = uuid.UUID("4f9c2a1e-0000-4000-8000-000000000001")
    data = {
        "id": incident_id,
        "organization_id": uuid.uuid4(),
        "incident_number": "INC-2025-0007",
        "child_id": uuid.uuid4(),
        "classroom_id": None,
        "incident_type": "injury",
        "severity": "minor",
        "status": "pending_signature",
        "occurred_at": datetime(2025, 6, 10, 14, 30, tzinfo=timezone.utc),
        "location": "Patio",
        "description": "Se cayó del columpio",
        "action_taken": "Hielo y observación",
        "reporting_teacher_id": None,
        "witness_staff_ids": [],
        "witness_names": ["Sra. Pérez"],
        "parent_notified": True,
        "parent_notified_at": datetime(2025, 6, 10, 15, 0, tzinfo=timezone.utc),
        "parent_notified_method": "phone",
        "parent_notified_by": None,
        "parent_response": None,
        "parent_copy_sent": False,
        "parent_copy_sent_at": None,
        "parent_copy_sent_method": None,
        "has_signature": False,
        "parent_signature_data": None,
        "parent_signed_at": None,
        "parent_signed_by_name": None,
        "parent_signed_by_relationship": None,
        "follow_up_required": False,
        "follow_up_date": None,
        "follow_up_completed": False,
        "follow_up_completed_at": None,
        "follow_up_completed_by": None,
        "closed_at": None,
        "closed_by": None,
        "closure_notes": None,
        "created_at": datetime(2025, 6, 10, 14, 45, tzinfo=timezone.utc),
        "updated_at": datetime(2025, 6, 10, 15, 0, tzinfo=timezone.utc),
        "child": ChildBrief(id=uuid.uuid4(), first_name="Sofía", last_name="García", date_of_birth=date(2022, 3, 14)),
        "classroom": ClassroomBrief(id=uuid.uuid4(), name="Mariposas"),
        "reporting_teacher": StaffBrief(id=uuid.uuid4(), first_name="María", last_name="López"),
        "witness_staff": [StaffBrief(id=uuid.uuid4(), first_name="Ana", last_name="Ruiz")],
    }
    data.update(overrides)
    return IncidentWithDetails(**data)


@pytest.mark.parametrize("dob,today,expected", [
    (date(2020, 6, 15), date(2025, 6, 10), "5 años"),
    (date(2024, 6, 15), date(2025, 6, 1), "1 año"),
    (date(2025, 1, 20), date(2025, 6, 10), "5 meses"),
    (date(2025, 5, 31), date(2025, 6, 1), "1 mes"),
    (date(2025, 6, 1), date(2025, 6, 30), "0 meses"),
    (date(2023, 7, 1), date(2025, 6, 30), "1 año"),
    (None, date(2025, 6, 10), "N/A"),
])
def test_calculate_age(dob, today, expected):
    assert report.calculate_age(dob, today) == expected


def test_format_date_and_time():
    value = datetime(2025, 6, 10, 14, 30, tzinfo=timezone.utc)
    assert report.format_date(value) == "10 de junio de 2025"
    assert report.format_time(value) == "14:30"
    assert report.format_time(value, ZoneInfo("America/New_York")) == "10:30"
    assert report.format_date(date(2025, 1, 3)) == "3 de enero de 2025"
    assert report.format_date(None) == "N/A"


def test_render_contains_core_sections():
    html = report.render_incident_report(_incident(), _organization(), now=NOW)
    assert html.startswith("<!DOCTYPE html>")
    assert "Little Stars Daycare" in html
    assert "123 Main St, Miami, FL, 33101" in html
    assert "Licencia: C11MD1234" in html
    assert "INC-2025-0007" in html
    assert "Sofía García" in html
    assert "14 de marzo de 2022 (3 años)" in html
    assert "Mariposas" in html
    assert "Pendiente de Firma" in html
    assert "10 de junio de 2025" in html
    assert "María López" in html
    assert "Ana Ruiz" in html
    assert "Sra. Pérez" in html
    assert "Documento generado: 10 de junio de 2025, 18:00" in html


def test_render_uses_timezone():
    html = report.render_incident_report(_incident(), _organization(), now=NOW, tz=ZoneInfo("America/New_York"))
    assert "<p class=\"highlight\">10:30</p>" in html
    assert "Documento generado: 10 de junio de 2025, 14:00" in html


def test_render_checks_selected_options():
    html = report.render_incident_report(_incident(severity="serious"), _organization(), now=NOW)
    assert '<span class="checkbox checked"></span>Accidente/Lesión' in html
    assert '<span class="checkbox checked"></span>Serio' in html
    assert '<span class="checkbox checked"></span>Teléfono' in html
    assert '<span class="checkbox"></span>Enfermedad' in html
    assert '<span class="checkbox"></span>Menor' in html


def test_render_escapes_user_text():
    incident = _incident(
        description="<script>alert('x')</script>",
        location="Salón & patio",
        child=ChildBrief(id=uuid.uuid4(), first_name="<b>Ana</b>", last_name="O'Neil"),
    )
    html = report.render_incident_report(incident, _organization(name="A&B <Kids>"), now=NOW)
    assert "<script>alert" not in html
    assert "&lt;script&gt;alert(&#x27;x&#x27;)&lt;/script&gt;" in html
    assert "Salón &amp; patio" in html
    assert "&lt;b&gt;Ana&lt;/b&gt; O&#x27;Neil" in html
    assert "A&amp;B &lt;Kids&gt;" in html


def test_render_without_signature_leaves_blank_lines():
    html = report.render_incident_report(_incident(), _organization(), now=NOW)
    assert 'alt="Firma del padre/tutor"' not in html
    assert html.count(report.BLANK_LINE) == 2


def test_render_with_signature():
    incident = _incident(
        status="closed",
        has_signature=True,
        parent_signature_data=SIGNATURE_DATA,
        parent_signed_at=datetime(2025, 6, 11, 16, 0, tzinfo=timezone.utc),
        parent_signed_by_name="Carlos García",
        parent_signed_by_relationship="Padre",
        parent_copy_sent=True,
    )
    html = report.render_incident_report(incident, _organization(), now=NOW)
    assert f'<img src="{SIGNATURE_DATA}" alt="Firma del padre/tutor">' in html
    assert "Carlos García" in html
    assert "Padre" in html
    assert "11 de junio de 2025" in html
    assert report.BLANK_LINE not in html
    assert "Cerrado" in html
    assert '<span class="checkbox checked"></span>Copia para Padre/Tutor' in html


def test_render_with_missing_optional_data():
    incident = _incident(
        child=None, classroom=None, reporting_teacher=None, witness_staff=[], witness_names=[],
        location=None, action_taken=None, parent_notified=False, parent_notified_at=None,
        parent_notified_method=None,
    )
    html = report.render_incident_report(incident, _organization(address=None, city=None, state=None,
                                                                 zip=None, phone=None), now=NOW)
    assert "No especificada" in html
    assert "Sin acción registrada" in html
    assert "Ninguno registrado" in html
    assert "Teléfono" in html
    assert '<span class="checkbox checked"></span>Teléfono' not in html


def test_report_filename():
    assert report.report_filename(_incident(), "html") == "Reporte-Incidente-INC-2025-0007.html"
    assert report.report_filename(_incident(incident_number=""), "pdf") == "Reporte-Incidente-4f9c2a1e.pdf"


def test_printable_response_opens_print_dialog():
    document = report.render_incident_report(_incident(), _organization(), now=NOW)
    response = report.printable_response(document)
    body = response.body.decode()
    assert "window.print()" in body
    assert body.index("window.print()") < body.index("</body>")


def test_download_response_is_attachment():
    incident = _incident()
    document = report.render_incident_report(incident, _organization(), now=NOW)
    response = report.download_response(document, incident)
    assert response.headers["content-disposition"] == 'attachment; filename="Reporte-Incidente-INC-2025-0007.html"'
    assert response.body.decode() == document

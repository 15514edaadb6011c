"""
Printable incident report for the family record.

``render_incident_report`` is pure: it reads an already-loaded incident and
organization profile and returns a self-contained HTML document. The
response helpers at the bottom deliver that document (preview, print,
download, PDF).
"""
import io
from datetime import date, datetime, timezone
from html import escape as html_escape
from zoneinfo import ZoneInfo

from fastapi.responses import HTMLResponse, Response, StreamingResponse

from daycare.core.incidents.schemas import IncidentWithDetails
from daycare.core.organizations.schemas import OrganizationInfo


MONTHS_ES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)

INCIDENT_TYPE_OPTIONS = [
    ("injury", "Accidente/Lesión"),
    ("illness", "Enfermedad"),
    ("behavioral", "Comportamiento"),
    ("medication", "Medicación"),
    ("property_damage", "Daño a Propiedad"),
    ("security", "Seguridad"),
    ("other", "Otro"),
]

SEVERITY_OPTIONS = [
    ("minor", "Menor"),
    ("moderate", "Moderado"),
    ("serious", "Serio"),
    ("critical", "Crítico"),
]

NOTIFICATION_METHOD_OPTIONS = [
    ("phone", "Teléfono"),
    ("in_person", "En Persona"),
    ("email", "Correo"),
    ("text", "Mensaje"),
]

# label, text color, background
SEVERITY_STYLE = {
    "minor": ("Menor", "#166534", "#dcfce7"),
    "moderate": ("Moderado", "#ca8a04", "#fef9c3"),
    "serious": ("Serio", "#ea580c", "#ffedd5"),
    "critical": ("Crítico", "#dc2626", "#fee2e2"),
}

STATUS_LABELS = {
    "open": "Abierto",
    "pending_signature": "Pendiente de Firma",
    "pending_closure": "Pendiente de Cierre",
    "closed": "Cerrado",
}

BLANK_LINE = "________________________"


def _esc(value) -> str:
    return html_escape(str(value), quote=True) if value is not None else ""


def _localize(value: datetime, tz: ZoneInfo | None) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz) if tz else value


def format_date(value: date | datetime | None, tz: ZoneInfo | None = None) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, datetime):
        value = _localize(value, tz).date()
    return f"{value.day} de {MONTHS_ES[value.month - 1]} de {value.year}"


def format_time(value: datetime | None, tz: ZoneInfo | None = None) -> str:
    if value is None:
        return "N/A"
    return _localize(value, tz).strftime("%H:%M")


def format_datetime(value: datetime | None, tz: ZoneInfo | None = None) -> str:
    if value is None:
        return "N/A"
    return f"{format_date(value, tz)}, {format_time(value, tz)}"


def calculate_age(date_of_birth: date | None, today: date) -> str:
    """
    Whole months between the birth month and the current month; the day of
    the month is not taken into account.
    """
    if date_of_birth is None:
        return "N/A"
    months = (today.year - date_of_birth.year) * 12 + (today.month - date_of_birth.month)
    if months < 12:
        return f"{months} {'mes' if months == 1 else 'meses'}"
    years = months // 12
    return f"{years} {'año' if years == 1 else 'años'}"


def _checkbox_grid(options: list[tuple[str, str]], selected: str | None) -> str:
    items = "".join(
        f'<div class="checkbox-item"><span class="checkbox{" checked" if value == selected else ""}"></span>'
        f"{_esc(label)}</div>"
        for value, label in options
    )
    return f'<div class="checkbox-grid">{items}</div>'


def _info_item(label: str, value_html: str, highlight: bool = False) -> str:
    cls = ' class="highlight"' if highlight else ""
    return f'<div class="info-item"><label>{_esc(label)}</label><p{cls}>{value_html}</p></div>'


def _section(title: str, body: str) -> str:
    return (
        f'<div class="section"><div class="section-header">{_esc(title)}</div>'
        f'<div class="section-content">{body}</div></div>'
    )


def _css(severity_color: str, severity_bg: str, closed: bool) -> str:
    status_bg, status_color = ("#dcfce7", "#166534") if closed else ("#fef3c7", "#92400e")
    return f"""
    * {{ margin: 0; padding: 0; box-sizing: border-box; }}
    body {{ font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif; line-height: 1.5; color: #1f2937;
           background: #fff; padding: 30px; max-width: 800px; margin: 0 auto; }}
    .header {{ display: flex; justify-content: space-between; align-items: flex-start; margin-bottom: 20px;
              padding-bottom: 15px; border-bottom: 3px solid #1e40af; }}
    .logo {{ max-height: 50px; margin-bottom: 8px; }}
    .company-info h1 {{ font-size: 20px; font-weight: 700; color: #1e40af; margin-bottom: 4px; }}
    .company-info p {{ font-size: 11px; color: #6b7280; margin: 2px 0; }}
    .report-title {{ text-align: right; }}
    .report-title h2 {{ font-size: 24px; font-weight: 700; text-transform: uppercase; letter-spacing: 1px; }}
    .incident-number {{ font-size: 14px; color: #6b7280; margin-top: 4px; }}
    .severity-badge {{ display: inline-block; padding: 4px 12px; border-radius: 4px; font-size: 12px; font-weight: 600;
                      margin-top: 8px; background: {severity_bg}; color: {severity_color};
                      border: 1px solid {severity_color}; }}
    .status-badge {{ display: inline-block; padding: 3px 8px; border-radius: 4px; font-size: 11px; font-weight: 600;
                    background: {status_bg}; color: {status_color}; }}
    .section {{ margin-bottom: 20px; border: 1px solid #e5e7eb; border-radius: 8px; overflow: hidden; }}
    .section-header {{ background: #f3f4f6; padding: 10px 15px; font-size: 13px; font-weight: 600; color: #374151;
                      text-transform: uppercase; letter-spacing: 0.5px; border-bottom: 1px solid #e5e7eb; }}
    .section-content {{ padding: 15px; }}
    .info-grid {{ display: grid; grid-template-columns: repeat(2, 1fr); gap: 15px; }}
    .info-grid-3 {{ display: grid; grid-template-columns: repeat(3, 1fr); gap: 15px; }}
    .info-item label {{ display: block; font-size: 10px; font-weight: 600; color: #6b7280; text-transform: uppercase;
                       margin-bottom: 4px; }}
    .info-item p {{ font-size: 13px; }}
    .info-item p.highlight {{ font-weight: 600; }}
    .spaced {{ margin-top: 15px; }}
    .description-box {{ background: #f9fafb; border: 1px solid #e5e7eb; border-radius: 6px; padding: 12px;
                       font-size: 13px; white-space: pre-wrap; min-height: 80px; }}
    .checkbox-grid {{ display: grid; grid-template-columns: repeat(2, 1fr); gap: 8px; margin-top: 8px; }}
    .checkbox-item {{ display: flex; align-items: center; gap: 8px; font-size: 12px; }}
    .checkbox {{ width: 16px; height: 16px; border: 2px solid #d1d5db; border-radius: 3px; display: inline-flex;
                align-items: center; justify-content: center; }}
    .checkbox.checked {{ background: #1e40af; border-color: #1e40af; color: white; }}
    .checkbox.checked::after {{ content: '\\2713'; font-size: 11px; font-weight: bold; }}
    .signature-section {{ margin-top: 30px; border: 2px solid #1e40af; border-radius: 8px; overflow: hidden; }}
    .signature-header {{ background: #1e40af; color: white; padding: 12px 15px; font-size: 14px; font-weight: 600;
                        text-transform: uppercase; }}
    .signature-content {{ padding: 20px; }}
    .signature-grid {{ display: grid; grid-template-columns: 1fr 1fr; gap: 30px; margin-bottom: 20px; }}
    .signature-box {{ border-bottom: 2px solid #1f2937; padding-bottom: 8px; min-height: 60px; display: flex;
                     align-items: flex-end; }}
    .signature-box img {{ max-height: 50px; max-width: 200px; }}
    .signature-label {{ font-size: 11px; color: #6b7280; margin-top: 4px; }}
    .confirmation-text {{ font-size: 12px; color: #4b5563; font-style: italic; margin-top: 15px; padding: 10px;
                         background: #f9fafb; border-radius: 4px; text-align: center; }}
    .footer {{ margin-top: 30px; padding-top: 15px; border-top: 1px solid #e5e7eb; display: flex;
              justify-content: space-between; font-size: 10px; color: #9ca3af; }}
    .copy-indicator {{ display: flex; gap: 15px; }}
    .copy-item {{ display: flex; align-items: center; gap: 5px; }}
    @media print {{
      body {{ padding: 15px; }}
      .section, .signature-section {{ page-break-inside: avoid; }}
      .no-print {{ display: none !important; }}
    }}
    """


def _header(incident: IncidentWithDetails, org: OrganizationInfo, severity_label: str) -> str:
    address = ", ".join(p for p in (org.address, org.city, org.state, org.zip) if p)
    lines = []
    if org.logo_url:
        lines.append(f'<img src="{_esc(org.logo_url)}" alt="{_esc(org.name)}" class="logo">')
    lines.append(f"<h1>{_esc(org.name)}</h1>")
    if address:
        lines.append(f"<p>{_esc(address)}</p>")
    if org.phone:
        lines.append(f"<p>Tel: {_esc(org.phone)}</p>")
    if org.license_number:
        lines.append(f"<p>Licencia: {_esc(org.license_number)}</p>")
    return (
        '<div class="header">'
        f'<div class="company-info">{"".join(lines)}</div>'
        '<div class="report-title"><h2>Reporte de Incidente</h2>'
        f'<p class="incident-number">{_esc(incident.incident_number) or "Sin número"}</p>'
        f'<span class="severity-badge">{_esc(severity_label)}</span></div>'
        "</div>"
    )


def _signature_block(incident: IncidentWithDetails, tz: ZoneInfo | None) -> str:
    image = ""
    if incident.parent_signature_data:
        image = f'<img src="{_esc(incident.parent_signature_data)}" alt="Firma del padre/tutor">'
    signed_on = format_date(incident.parent_signed_at, tz) if incident.parent_signed_at else ""
    return (
        '<div class="signature-section">'
        '<div class="signature-header">Firma del Padre/Tutor (Obligatoria)</div>'
        '<div class="signature-content">'
        '<div class="signature-grid">'
        f'<div><div class="signature-box">{image}</div><p class="signature-label">Firma del Padre/Tutor</p></div>'
        f'<div><div class="signature-box">{_esc(signed_on)}</div><p class="signature-label">Fecha</p></div>'
        "</div>"
        '<div class="info-grid">'
        + _info_item("Nombre del Firmante", _esc(incident.parent_signed_by_name or BLANK_LINE), highlight=True)
        + _info_item("Relación con el Niño", _esc(incident.parent_signed_by_relationship or BLANK_LINE))
        + "</div>"
        '<div class="confirmation-text">"Confirmo que he sido informado(a) del incidente descrito anteriormente '
        'y que he recibido copia de este reporte."</div>'
        "</div></div>"
    )


def render_incident_report(
    incident: IncidentWithDetails,
    organization: OrganizationInfo,
    *,
    now: datetime | None = None,
    tz: ZoneInfo | None = None,
) -> str:
    now = now or datetime.now(timezone.utc)
    today = _localize(now, tz).date()
    severity_label, severity_color, severity_bg = SEVERITY_STYLE.get(
        incident.severity, (incident.severity, "#6b7280", "#f3f4f6")
    )

    child = incident.child
    child_name = _esc(child.full_name) if child else "N/A"
    dob = child.date_of_birth if child else None
    classroom = _esc(incident.classroom.name) if incident.classroom else "N/A"
    status_label = STATUS_LABELS.get(incident.status, incident.status)

    child_block = _section("Información del Niño", (
        '<div class="info-grid">'
        + _info_item("Nombre Completo", child_name, highlight=True)
        + _info_item("Fecha de Nacimiento", f"{format_date(dob)} ({calculate_age(dob, today)})")
        + _info_item("Salón", classroom)
        + _info_item("Estado", f'<span class="status-badge">{_esc(status_label)}</span>')
        + "</div>"
    ))

    details_block = _section("Detalles del Incidente", (
        '<div class="info-grid-3">'
        + _info_item("Fecha", format_date(incident.occurred_at, tz), highlight=True)
        + _info_item("Hora", format_time(incident.occurred_at, tz), highlight=True)
        + _info_item("Ubicación", _esc(incident.location or "No especificada"))
        + "</div>"
        '<div class="info-grid spaced">'
        f'<div class="info-item"><label>Tipo de Incidente</label>'
        f"{_checkbox_grid(INCIDENT_TYPE_OPTIONS, incident.incident_type)}</div>"
        f'<div class="info-item"><label>Severidad</label>'
        f"{_checkbox_grid(SEVERITY_OPTIONS, incident.severity)}</div>"
        "</div>"
        '<div class="info-item spaced"><label>Descripción Detallada del Incidente</label>'
        f'<div class="description-box">{_esc(incident.description or "Sin descripción")}</div></div>'
    ))

    action_block = _section(
        "Acción Tomada",
        f'<div class="description-box">{_esc(incident.action_taken or "Sin acción registrada")}</div>',
    )

    reporter = _esc(incident.reporting_teacher.full_name) if incident.reporting_teacher else "N/A"
    witness_staff = ", ".join(s.full_name for s in incident.witness_staff)
    witness_names = ", ".join(incident.witness_names)
    staff_block = _section("Personal Involucrado", (
        '<div class="info-grid">'
        + _info_item("Reportado Por", reporter, highlight=True)
        + _info_item("Personal Testigo", _esc(witness_staff or "Ninguno registrado"))
        + _info_item("Otros Testigos", _esc(witness_names or "Ninguno registrado"))
        + "</div>"
    ))

    notification_block = _section("Notificación a Padres/Tutores", (
        '<div class="info-grid">'
        + _info_item("Padre/Tutor Notificado", "Sí" if incident.parent_notified else "No", highlight=True)
        + _info_item("Hora de Notificación", format_datetime(incident.parent_notified_at, tz))
        + '<div class="info-item"><label>Método de Notificación</label>'
        + _checkbox_grid(NOTIFICATION_METHOD_OPTIONS, incident.parent_notified_method)
        + "</div></div>"
    ))

    footer = (
        '<div class="footer">'
        f"<div><p>Documento generado: {format_datetime(now, tz)}</p>"
        f"<p>{_esc(organization.name)} - Reporte de Incidentes</p></div>"
        '<div class="copy-indicator">'
        '<div class="copy-item"><span class="checkbox checked"></span>Copia para Daycare</div>'
        f'<div class="copy-item"><span class="checkbox{" checked" if incident.parent_copy_sent else ""}"></span>'
        "Copia para Padre/Tutor</div>"
        "</div></div>"
    )

    return (
        "<!DOCTYPE html>\n"
        '<html lang="es">\n<head>\n<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"<title>Reporte de Incidente {_esc(incident.incident_number)}</title>\n"
        f"<style>{_css(severity_color, severity_bg, incident.status == 'closed')}</style>\n"
        "</head>\n<body>\n"
        + _header(incident, organization, severity_label)
        + child_block
        + details_block
        + action_block
        + staff_block
        + notification_block
        + _signature_block(incident, tz)
        + footer
        + "\n</body>\n</html>\n"
    )


def report_filename(incident: IncidentWithDetails, ext: str) -> str:
    ref = incident.incident_number or str(incident.id)[:8]
    return f"Reporte-Incidente-{ref}.{ext}"


# ── Delivery ──────────────────────────────────────────────────────────────────

PRINT_SCRIPT = "<script>window.addEventListener('load', function () { window.focus(); window.print(); });</script>"


def preview_response(document: str) -> HTMLResponse:
    return HTMLResponse(document)


def printable_response(document: str) -> HTMLResponse:
    return HTMLResponse(document.replace("</body>", f"{PRINT_SCRIPT}\n</body>", 1))


def download_response(document: str, incident: IncidentWithDetails) -> Response:
    filename = report_filename(incident, "html")
    return Response(
        content=document,
        media_type="text/html; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def pdf_response(document: str, incident: IncidentWithDetails) -> StreamingResponse:
    from weasyprint import HTML

    pdf_buffer = io.BytesIO()
    HTML(string=document).write_pdf(pdf_buffer)
    pdf_buffer.seek(0)
    filename = report_filename(incident, "pdf")
    return StreamingResponse(
        pdf_buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

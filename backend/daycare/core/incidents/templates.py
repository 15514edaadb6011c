from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class IncidentTemplate:
    name: str
    incident_type: str
    severity: str
    description_template: str
    action_template: str


INCIDENT_TEMPLATES = MappingProxyType({
    "booboo": IncidentTemplate(
        name="Reporte Booboo (Lesión Menor)",
        incident_type="injury",
        severity="minor",
        description_template=(
            "Tipo de lesión: [rasguño/golpe/mordedura/caída]\n"
            "Parte del cuerpo afectada: [describir]\n"
            "¿Cómo ocurrió?: [describir circunstancias]\n"
            "¿Dónde ocurrió?: [área de juegos/salón/baño/etc.]"
        ),
        action_template=(
            "Tratamiento aplicado:\n"
            "[ ] Lavado con agua y jabón\n"
            "[ ] Aplicación de hielo\n"
            "[ ] Curita/vendaje\n"
            "[ ] Consuelo y observación\n"
            "[ ] Otro: _____________\n"
            "\n"
            "Observaciones adicionales:"
        ),
    ),
    "behavioral": IncidentTemplate(
        name="Incidente Conductual",
        incident_type="behavioral",
        severity="moderate",
        description_template=(
            "Comportamiento observado: [describir]\n"
            "Contexto/situación: [qué estaba ocurriendo antes]\n"
            "¿Involucró a otros niños?: [sí/no - nombres si aplica]\n"
            "Duración aproximada: [minutos]"
        ),
        action_template=(
            "Intervención realizada:\n"
            "[ ] Redirección verbal\n"
            "[ ] Tiempo de calma\n"
            "[ ] Conversación individual\n"
            "[ ] Separación temporal del grupo\n"
            "[ ] Contacto inmediato con padres\n"
            "[ ] Otro: _____________\n"
            "\n"
            "Plan de seguimiento:"
        ),
    ),
    "illness": IncidentTemplate(
        name="Enfermedad/Síntomas",
        incident_type="illness",
        severity="moderate",
        description_template=(
            "Síntomas observados: [describir]\n"
            "Hora de inicio de síntomas: [hora]\n"
            "Temperatura (si aplica): [°F]\n"
            "¿Comió/bebió normalmente?: [sí/no]\n"
            "Comportamiento general: [normal/irritable/letárgico]"
        ),
        action_template=(
            "Acciones tomadas:\n"
            "[ ] Monitoreo continuo\n"
            "[ ] Temperatura tomada\n"
            "[ ] Aislamiento del grupo\n"
            "[ ] Contacto con padres para recogida\n"
            "[ ] Líquidos ofrecidos\n"
            "[ ] Descanso\n"
            "\n"
            "Hora de contacto con padres:\n"
            "Hora de recogida:"
        ),
    ),
    "medication": IncidentTemplate(
        name="Administración de Medicamento",
        incident_type="medication",
        severity="minor",
        description_template=(
            "Medicamento: [nombre]\n"
            "Dosis: [cantidad]\n"
            "Vía de administración: [oral/tópica/inhalada]\n"
            "Hora programada: [hora]\n"
            "Hora administrada: [hora]"
        ),
        action_template=(
            "Verificaciones realizadas:\n"
            "[ ] Autorización de padres verificada\n"
            "[ ] Medicamento en envase original\n"
            "[ ] Nombre del niño en el medicamento\n"
            "[ ] Fecha de vencimiento verificada\n"
            "[ ] Segunda persona verificó dosis\n"
            "\n"
            "Observaciones post-administración:"
        ),
    ),
    "accident": IncidentTemplate(
        name="Accidente Serio",
        incident_type="injury",
        severity="serious",
        description_template=(
            "Descripción detallada del accidente:\n"
            "\n"
            "Lesiones visibles:\n"
            "\n"
            "Testigos presentes:\n"
            "\n"
            "Equipos/áreas involucradas:"
        ),
        action_template=(
            "Acciones inmediatas:\n"
            "[ ] Primeros auxilios administrados\n"
            "[ ] 911 llamado (hora: ___)\n"
            "[ ] Padres contactados inmediatamente\n"
            "[ ] Director/supervisor notificado\n"
            "[ ] Área asegurada\n"
            "[ ] Fotos tomadas\n"
            "\n"
            "Detalles de atención médica (si aplica):"
        ),
    ),
})


def get_template(key: str) -> IncidentTemplate | None:
    return INCIDENT_TEMPLATES.get(key)

# services/reservation-service/src/apps/core/messages.py
"""
User-facing copy.

Exactly one (title, message) pair per cancellation outcome and per error
code, in the language of the members' UI.
"""

from typing import Dict, Tuple

from apps.core.services.cancellation_policy import Outcome

OUTCOME_MESSAGES: Dict[Outcome, Tuple[str, str]] = {
    Outcome.PENALIZED: (
        "Reserva Penalizada",
        "Cancelaste con menos de 24hs. La reserva fue PENALIZADA, por lo que deberás "
        "pagarla. Pero puedes reagendarla por un plazo de 6 días a partir de la fecha "
        "de la reserva original, sin costo adicional.",
    ),
    Outcome.CANCELLED: (
        "Reserva Cancelada",
        "La reserva ha sido cancelada correctamente sin penalización.",
    ),
    Outcome.RESCHEDULE_REVERTED: (
        "Reagendamiento Cancelado",
        "Se canceló la reserva reagendada. La reserva original que fue PENALIZADA ha "
        "sido reactivada, por lo que puedes volver a reagendarla por un plazo de 6 días "
        "a partir de la fecha de la reserva original, sin costo adicional.",
    ),
    Outcome.SERIES_CANCELLED_WITH_PENALTY: (
        "Serie Cancelada con Penalización",
        "La serie fue cancelada. La primera reserva fue PENALIZADA, por haberla "
        "cancelado con menos de 24 horas de anticipación. El resto de las reservas "
        "fueron CANCELADAS sin costo.",
    ),
    Outcome.SERIES_CANCELLED: (
        "Serie Cancelada",
        "Toda la serie de reservas ha sido cancelada correctamente.",
    ),
    Outcome.NO_FUTURE_BOOKINGS: (
        "Información",
        "No se encontraron reservas futuras activas en esta serie para cancelar.",
    ),
}

ERROR_MESSAGES: Dict[str, Tuple[str, str]] = {
    'NOT_FOUND': (
        "Reserva no Encontrada",
        "La reserva solicitada no existe o fue eliminada.",
    ),
    'FORBIDDEN': (
        "Acción no Permitida",
        "Solo el titular de la reserva o un administrador puede realizar esta acción.",
    ),
    'INVALID_STATE': (
        "Acción no Disponible",
        "El estado actual de la reserva no permite realizar esta acción.",
    ),
    'CONFLICT': (
        "Error en la Confirmación",
        "El horario seleccionado se superpone con otra reserva.",
    ),
    'RENEWAL_CONFLICT': (
        "No se Pudo Renovar la Serie",
        "Algunos horarios de la renovación ya están ocupados.",
    ),
    'RESCHEDULE_WINDOW_EXPIRED': (
        "Plazo de Reagendamiento Vencido",
        "El plazo de 6 días para reagendar esta reserva sin costo adicional ya venció.",
    ),
    'ALREADY_RESCHEDULED': (
        "Reserva ya Reagendada",
        "Esta reserva penalizada ya fue reagendada una vez.",
    ),
    'INVALID_INTERVAL': (
        "Horario Inválido",
        "Revisa el horario: la reserva debe terminar después de empezar y durar al menos una hora.",
    ),
    'INVALID_DATE': (
        "Fecha Inválida",
        "La fecha ingresada no es válida.",
    ),
    'STORAGE_ERROR': (
        "Error del Servidor",
        "No se pudo completar la operación. Ningún cambio fue guardado, intenta nuevamente.",
    ),
}

SERIES_RENEWED_TITLE = "¡Serie Renovada!"
RESCHEDULED = ("Reagendamiento Exitoso", "La reserva ha sido reagendada correctamente.")
CREATED = ("Confirmado", "Las reservas se han guardado correctamente.")


def for_outcome(outcome: Outcome) -> Tuple[str, str]:
    return OUTCOME_MESSAGES[Outcome(outcome)]


def for_error(code: str) -> Tuple[str, str]:
    return ERROR_MESSAGES.get(code, ("Error", "Ocurrió un error inesperado."))


def series_renewed(count: int) -> Tuple[str, str]:
    return SERIES_RENEWED_TITLE, f"Se crearon {count} nuevas reservas."

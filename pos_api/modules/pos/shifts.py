"""
Clasificación de turnos.

Horario del negocio (minutos desde medianoche, hora local):

- Lunes a jueves: 08:00-16:00 turno 1, 16:00-21:00 turno 2
- Viernes y sábado: turno 1 todo el día
- Domingo: 08:00-15:00 turno 2, 15:00-21:00 turno 1

Fuera de estos horarios se clasifica como turno 1.
"""
from datetime import datetime
import enum


class Shift(enum.IntEnum):
    DIA = 1
    NOCHE = 2


OPENING = 8 * 60            # 480
WEEKDAY_SPLIT = 16 * 60     # 960
SUNDAY_SPLIT = 15 * 60      # 900
CLOSING = 21 * 60           # 1260

# datetime.weekday(): lunes = 0 ... domingo = 6
MONDAY_TO_THURSDAY = (0, 1, 2, 3)
FRIDAY_SATURDAY = (4, 5)
SUNDAY = 6


def get_shift(moment: datetime) -> Shift:
    """Turno al que pertenece un instante; nunca falla"""
    day = moment.weekday()
    minutes = moment.hour * 60 + moment.minute

    if day in MONDAY_TO_THURSDAY:
        if OPENING <= minutes < WEEKDAY_SPLIT:
            return Shift.DIA
        if WEEKDAY_SPLIT <= minutes <= CLOSING:
            return Shift.NOCHE

    if day in FRIDAY_SATURDAY:
        return Shift.DIA

    if day == SUNDAY:
        if OPENING <= minutes < SUNDAY_SPLIT:
            return Shift.NOCHE
        if SUNDAY_SPLIT <= minutes <= CLOSING:
            return Shift.DIA

    return Shift.DIA

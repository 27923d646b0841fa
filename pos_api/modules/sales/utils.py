"""
Utilidades de facturación: monto en letras y convención de líneas de servicio.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from pos_api.core.config import settings

SERVICE_PREFIX = "S"

UNITS = [
    "", "UNO", "DOS", "TRES", "CUATRO", "CINCO",
    "SEIS", "SIETE", "OCHO", "NUEVE", "DIEZ",
    "ONCE", "DOCE", "TRECE", "CATORCE", "QUINCE",
    "DIECISÉIS", "DIECISIETE", "DIECIOCHO", "DIECINUEVE"
]

TENS = [
    "", "", "VEINTE", "TREINTA", "CUARENTA",
    "CINCUENTA", "SESENTA", "SETENTA",
    "OCHENTA", "NOVENTA"
]


def is_service_line(item_id: Union[int, str]) -> bool:
    """Las líneas de servicio no mueven inventario; su ID empieza con S"""
    return isinstance(item_id, str) and item_id.startswith(SERVICE_PREFIX)


def integer_to_words(n: int) -> str:
    """
    Convierte enteros de 0 a 199 a letras.

    Desde 200 devuelve el número tal cual (limitación conocida del formato
    de factura).
    """
    if n == 0:
        return "CERO"
    if n < 20:
        return UNITS[n]
    if n < 100:
        tens, units = divmod(n, 10)
        return TENS[tens] if units == 0 else f"{TENS[tens]} Y {UNITS[units]}"
    if n == 100:
        return "CIEN"
    if n < 200:
        return f"CIENTO {integer_to_words(n - 100)}"
    return str(n)


def amount_to_words(amount: Union[Decimal, float, int, str], currency: Optional[str] = None) -> str:
    """
    Monto en letras para la factura.

    >>> amount_to_words(Decimal("125.5"))
    'CIENTO VEINTE Y CINCO LEMPIRAS CON 50/100'
    """
    currency = currency or settings.CURRENCY_NAME
    value = Decimal(str(amount))
    if value < 0:
        raise ValueError("El monto no puede ser negativo")

    value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    integer = int(value)
    cents = int((value - integer) * 100)

    return f"{integer_to_words(integer)} {currency} CON {cents:02d}/100"

"""
Excepciones de dominio del backend POS.

Cada excepción lleva el código HTTP con el que se responde; los handlers
registrados en la app las convierten en {"ok": false, "error": ...}.
"""
from fastapi import status


class POSError(Exception):
    """Base de todos los errores de dominio"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(POSError):
    """Datos de entrada inválidos o incompletos"""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(POSError):
    """La entidad referenciada no existe"""
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(POSError):
    """La operación choca con el estado actual del almacén"""
    status_code = status.HTTP_409_CONFLICT


class NoOpenDrawerError(ConflictError):
    def __init__(self, message: str = "No hay caja abierta."):
        super().__init__(message)


class StorageError(POSError):
    """Fallo del almacén o del guardado de documentos; la transacción ya fue revertida"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class AuthError(POSError):
    """Credencial ausente o inválida"""
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN

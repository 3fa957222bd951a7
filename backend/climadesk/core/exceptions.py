"""
Excepciones de la aplicación.
Proyecto: ClimaDesk (Back-office de climatización)

Define las excepciones del dominio para un manejo centralizado de errores
en los handlers de FastAPI.

NOTA: BusinessValidationError es distinta de pydantic.ValidationError.
- pydantic.ValidationError: errores de forma/tipo del cuerpo (FastAPI -> 422)
- BusinessValidationError: reglas de negocio; lleva la lista completa de
  mensajes para que la UI los muestre todos a la vez (-> 422)
"""

from typing import Any, Dict, Iterable, List, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "DuplicateError",
    "BusinessValidationError",
    "ConflictError",
    "ExternalProviderFailure",
]


class AppException(Exception):
    """
    Excepción base de la aplicación.

    Attributes:
        status_code: código HTTP a devolver
        error_code: identificador estable para el frontend
        detail: mensaje legible
        extra: datos adicionales para el frontend
    """

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.detail = detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(detail)

    @property
    def errors(self) -> List[str]:
        """Mensajes a mostrar; por defecto solo el detalle."""
        return [self.detail]


class NotFoundError(AppException):
    """
    Se lanza cuando una entidad buscada por id no existe.
    """

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        detail: str = "Recurso no encontrado",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class DuplicateError(AppException):
    """
    Se lanza al crear un recurso que viola una restricción de unicidad
    (por ejemplo un número de comprobante fiscal repetido).
    """

    status_code: int = 409
    error_code: str = "DUPLICATE_RESOURCE"

    def __init__(
        self,
        detail: str = "El recurso ya existe",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class BusinessValidationError(ValueError, AppException):
    """
    Violación de reglas de negocio corregible por el cliente.

    Hereda de ValueError para poder lanzarse desde validadores de Pydantic.
    Admite una lista de mensajes: las validaciones de líneas recogen todos
    los problemas antes de rechazar la petición.

    Ejemplos:
        - "Quantity debe ser mayor que 0."
        - "No hay comprobantes fiscales disponibles."
        - "No se pueden registrar pagos en una factura cancelada."
    """

    status_code: int = 422
    error_code: str = "BUSINESS_VALIDATION_ERROR"

    def __init__(
        self,
        detail: str | Iterable[str] = "Validación de datos fallida",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        messages = [detail] if isinstance(detail, str) else list(detail)
        self._messages = messages
        # AppException.__init__ directo para no pasar por ValueError
        AppException.__init__(self, " ".join(messages), error_code, extra)

    @property
    def errors(self) -> List[str]:
        return list(self._messages)


class ConflictError(AppException):
    """
    Conflicto de estado: la operación no puede aplicarse sobre el estado
    actual del recurso (p. ej. cliente referenciado por facturas).
    """

    status_code: int = 409
    error_code: str = "CONFLICT_STATE"

    def __init__(
        self,
        detail: str = "Conflicto de estado",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class ExternalProviderFailure(Exception):
    """
    Fallo del proveedor externo de lenguaje (timeout, estado no exitoso,
    JSON inválido o forma inesperada).

    Nunca llega a un handler HTTP: el asistente la captura y usa el parser
    heurístico.
    """

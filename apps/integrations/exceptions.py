"""
Errores de la integración con Jilt.

Todos los errores de la API remota llevan un ErrorKind para que los llamadores
decidan por tipo, estado HTTP y mensaje, nunca por el texto de la excepción.
"""
import enum


class ErrorKind(enum.Enum):
    TRANSPORT = 'transport'
    HTTP = 'http'
    ACCOUNT_CANCELLED = 'account_cancelled'


class JiltError(Exception):
    """Base de los errores de la integración."""


class JiltAPIError(JiltError):
    """Respuesta no exitosa (o fallo de red) al hablar con la API de Jilt."""

    def __init__(self, message, status=None, kind=ErrorKind.HTTP):
        super().__init__(message)
        self.message = message
        self.status = status
        self.kind = kind

    def __str__(self):
        return self.message


class JiltTransportError(JiltAPIError):
    """No se pudo contactar la API (DNS, conexión, timeout)."""

    def __init__(self, message):
        super().__init__(message, status=None, kind=ErrorKind.TRANSPORT)


class SignatureError(JiltError):
    """Token de recuperación manipulado, malformado o sin clave para verificar."""


class IntegrationAPIError(JiltError):
    """Petición inválida a la API de integración; se responde con status."""

    def __init__(self, message, status=422):
        super().__init__(message)
        self.message = message
        self.status = status

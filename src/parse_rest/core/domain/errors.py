"""Taxonomía de errores del SDK.

Por qué una jerarquía y no un único tipo:
- El llamador decide por `kind` (y luego por `code`), nunca por el texto del mensaje.
- Cada capa (transporte, decoder, builders) lanza la subclase que le corresponde.

Reglas:
- Ningún componente reintenta ni traga errores; todo se propaga al llamador.
- `PreconditionError` nunca llega a la red.
"""

from __future__ import annotations

from enum import Enum, IntEnum


class ErrorKind(str, Enum):
    """Discriminador estable de la taxonomía."""

    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    PARSE_CODE = "parse_code"
    DECODE = "decode"
    PRECONDITION = "precondition"
    CONFIGURATION = "configuration"


class ParseErrorCode(IntEnum):
    """Códigos numéricos frecuentes del sobre de error de Parse Server."""

    OTHER_CAUSE = -1
    INTERNAL_SERVER_ERROR = 1
    CONNECTION_FAILED = 100
    OBJECT_NOT_FOUND = 101
    INVALID_QUERY = 102
    INVALID_CLASS_NAME = 103
    MISSING_OBJECT_ID = 104
    INVALID_KEY_NAME = 105
    INVALID_POINTER = 106
    INVALID_JSON = 107
    INCORRECT_TYPE = 111
    OPERATION_FORBIDDEN = 119
    INVALID_FILE_NAME = 122
    INVALID_ACL = 123
    TIMEOUT = 124
    INVALID_EMAIL_ADDRESS = 125
    DUPLICATE_VALUE = 137
    INVALID_ROLE_NAME = 139
    SCRIPT_FAILED = 141
    VALIDATION_ERROR = 142
    FILE_DELETE_ERROR = 153
    REQUEST_LIMIT_EXCEEDED = 155
    INVALID_EVENT_NAME = 160
    USERNAME_MISSING = 200
    PASSWORD_MISSING = 201
    USERNAME_TAKEN = 202
    EMAIL_TAKEN = 203
    EMAIL_MISSING = 204
    EMAIL_NOT_FOUND = 205
    SESSION_MISSING = 206
    INVALID_SESSION_TOKEN = 209
    CLASS_NOT_EMPTY = 255


class ParseSDKError(Exception):
    """Raíz de todos los errores que expone el SDK."""

    kind: ErrorKind = ErrorKind.PRECONDITION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class TransportError(ParseSDKError):
    """Fallo de red o de protocolo HTTP (p.ej. demasiadas redirecciones) sin respuesta utilizable."""

    kind = ErrorKind.TRANSPORT


class HttpStatusError(ParseSDKError):
    """Respuesta no-2xx sin un sobre de error de Parse reconocible."""

    kind = ErrorKind.HTTP_STATUS

    def __init__(self, status: int, message: str | None = None) -> None:
        super().__init__(message or f"HTTP {status}")
        self.status = status


class ParseCodeError(ParseSDKError):
    """Sobre `{"code": int, "error": str}` devuelto por el servidor."""

    kind = ErrorKind.PARSE_CODE

    def __init__(self, code: int, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.status = status

    @property
    def known_code(self) -> ParseErrorCode | None:
        try:
            return ParseErrorCode(self.code)
        except ValueError:
            return None

    def __str__(self) -> str:
        return f"Parse error {self.code}: {self.message}"

    def __repr__(self) -> str:
        return f"ParseCodeError(code={self.code}, message={self.message!r}, status={self.status})"


class DecodeError(ParseSDKError):
    """Cuerpo no-JSON o forma inesperada (p.ej. se esperaba objeto y llegó lista)."""

    kind = ErrorKind.DECODE


class PreconditionError(ParseSDKError, ValueError):
    """Violación de invariantes del lado cliente (p.ej. fetch sin objectId)."""

    kind = ErrorKind.PRECONDITION


class ConfigurationError(PreconditionError):
    """Credenciales ausentes o inválidas en la construcción del cliente/petición."""

    kind = ErrorKind.CONFIGURATION

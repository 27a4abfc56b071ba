"""Cliente asíncrono para la API REST de Parse Server."""

from parse_rest.adapters.resources.query import ParseQuery
from parse_rest.client import ParseClient
from parse_rest.core.config import ParseSettings
from parse_rest.core.domain.errors import (
    ConfigurationError,
    DecodeError,
    ErrorKind,
    HttpStatusError,
    ParseCodeError,
    ParseErrorCode,
    ParseSDKError,
    PreconditionError,
    TransportError,
)
from parse_rest.core.domain.models import (
    ACL,
    ParseInstallation,
    ParseObject,
    ParseRole,
    ParseSession,
    ParseUser,
    register_object_class,
)
from parse_rest.core.domain.schema import FieldSchema, FieldType, ParseSchema, ServerConfig
from parse_rest.core.domain.values import Bytes, FieldOp, FileRef, GeoPoint, Pointer, Relation

__version__ = "0.1.0"

__all__ = [
    "ACL",
    "Bytes",
    "ConfigurationError",
    "DecodeError",
    "ErrorKind",
    "FieldOp",
    "FieldSchema",
    "FieldType",
    "FileRef",
    "GeoPoint",
    "HttpStatusError",
    "ParseClient",
    "ParseCodeError",
    "ParseErrorCode",
    "ParseInstallation",
    "ParseObject",
    "ParseQuery",
    "ParseRole",
    "ParseSchema",
    "ParseSDKError",
    "ParseSession",
    "ParseSettings",
    "ParseUser",
    "Pointer",
    "PreconditionError",
    "Relation",
    "ServerConfig",
    "TransportError",
    "register_object_class",
]

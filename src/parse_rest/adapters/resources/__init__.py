"""Recursos REST (uno por familia de rutas).

Por qué un paquete:
- Cada módulo compone builder + compilador + decoder contra su propia familia de rutas.
- `ParseClient` los instancia compartiendo un único `ParseAPI` y un único `SessionState`.
"""

from parse_rest.adapters.resources.analytics import AnalyticsResource
from parse_rest.adapters.resources.cloud import CloudResource
from parse_rest.adapters.resources.files import FilesResource
from parse_rest.adapters.resources.installations import InstallationsResource
from parse_rest.adapters.resources.objects import ObjectsResource
from parse_rest.adapters.resources.query import ParseQuery
from parse_rest.adapters.resources.roles import RolesResource
from parse_rest.adapters.resources.schemas import SchemasResource
from parse_rest.adapters.resources.server_config import ConfigResource
from parse_rest.adapters.resources.sessions import SessionsResource
from parse_rest.adapters.resources.users import UsersResource

__all__ = [
	"AnalyticsResource",
	"CloudResource",
	"ConfigResource",
	"FilesResource",
	"InstallationsResource",
	"ObjectsResource",
	"ParseQuery",
	"RolesResource",
	"SchemasResource",
	"SessionsResource",
	"UsersResource",
]

"""Domain models for parsed process definitions."""

import re
from datetime import date
from enum import Enum
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field as ModelField, field_serializer, field_validator

_TOKEN_NOISE = re.compile(r"[^A-Z0-9]")


def normalize_token(token: str) -> str:
    """Reduce an enumerated token to upper-case letters and digits."""
    return _TOKEN_NOISE.sub("", token.upper())


class TokenEnum(str, Enum):
    """String enum whose members can be looked up from loosely spelled tokens."""

    @classmethod
    def from_token(cls, token: str | None):
        """Return the member matching ``token`` by name or value, or None."""
        if not token:
            return None
        key = normalize_token(token)
        for member in cls:
            if key in (normalize_token(member.name), normalize_token(member.value)):
                return member
        return None

    @classmethod
    def tokens(cls) -> list[str]:
        """Canonical spellings of all legal values."""
        return [member.value for member in cls]


class ProcessType(TokenEnum):
    """Supported process categories."""
    CAI = "CAI"
    CDI = "CDI"

    @property
    def display_name(self) -> str:
        return _PROCESS_TYPE_NAMES[self]


_PROCESS_TYPE_NAMES = {
    ProcessType.CAI: "Cloud Application Integration",
    ProcessType.CDI: "Cloud Data Integration",
}


class ConnectionType(TokenEnum):
    """Connection types."""
    REST = "REST"
    SOAP = "SOAP"
    DATABASE = "Database"
    FILE = "File"
    FTP = "FTP"
    SFTP = "SFTP"
    S3 = "S3"
    KAFKA = "Kafka"
    OTHER = "Other"

    @property
    def is_network(self) -> bool:
        return self in (ConnectionType.REST, ConnectionType.SOAP)

    @property
    def is_storage(self) -> bool:
        return self is ConnectionType.DATABASE


class AuthenticationType(TokenEnum):
    """Connection authentication types."""
    NONE = "None"
    BASIC = "Basic"
    OAUTH2 = "OAuth2"
    API_KEY = "API_KEY"
    JWT = "JWT"
    PASSWORD = "Password"


class TransformationType(TokenEnum):
    """Transformation types."""
    EXPRESSION = "Expression"
    FILTER = "Filter"
    AGGREGATOR = "Aggregator"
    JOINER = "Joiner"
    LOOKUP = "Lookup"
    ROUTER = "Router"
    SORTER = "Sorter"
    UNION = "Union"
    OTHER = "Other"


class HttpMethod(TokenEnum):
    """HTTP methods for API endpoints."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"


class ParameterLocation(TokenEnum):
    """Where an endpoint parameter is carried."""
    QUERY = "query"
    PATH = "path"
    HEADER = "header"
    COOKIE = "cookie"
    BODY = "body"


_FROZEN = ConfigDict(frozen=True, populate_by_name=True)


def _read_only(value: Mapping) -> Mapping:
    """Copy a mapping into a read-only view."""
    return MappingProxyType(dict(value))


class Connection(BaseModel):
    """A connection to an external system."""
    id: str
    name: str | None = None
    type: ConnectionType = ConnectionType.OTHER
    url: str | None = None
    host: str | None = None
    port: int | None = None
    database: str | None = None
    authentication_type: AuthenticationType | None = ModelField(
        alias="authenticationType", default=None
    )

    @property
    def is_network(self) -> bool:
        return self.type.is_network

    @property
    def is_storage(self) -> bool:
        return self.type.is_storage

    @property
    def endpoint(self) -> str | None:
        """URL for network connections, host:port/database for storage ones."""
        if self.is_network or (self.url and not self.host):
            return self.url
        if self.host:
            location = f"{self.host}:{self.port}" if self.port is not None else self.host
            return f"{location}/{self.database}" if self.database else location
        return None

    model_config = _FROZEN


class Field(BaseModel):
    """An input or output field of a transformation."""
    name: str
    type: str | None = None
    description: str | None = None
    required: bool = False

    model_config = _FROZEN


class Transformation(BaseModel):
    """A data transformation step."""
    id: str
    name: str | None = None
    type: TransformationType = TransformationType.OTHER
    description: str | None = None
    expression: str | None = None
    condition: str | None = None
    input_fields: tuple[Field, ...] = ModelField(alias="inputFields", default=())
    output_fields: tuple[Field, ...] = ModelField(alias="outputFields", default=())

    model_config = _FROZEN


class DataSource(BaseModel):
    """Where a data flow reads from."""
    connection_ref: str | None = ModelField(alias="connectionRef", default=None)
    entity: str | None = None

    model_config = _FROZEN


class DataTarget(BaseModel):
    """Where a data flow writes to."""
    connection_ref: str | None = ModelField(alias="connectionRef", default=None)
    entity: str | None = None

    model_config = _FROZEN


class DataFlow(BaseModel):
    """Source, ordered transformation chain and target of a process."""
    source: DataSource | None = None
    target: DataTarget | None = None
    transformation_refs: tuple[str, ...] = ModelField(alias="transformationRefs", default=())

    model_config = _FROZEN


class Parameter(BaseModel):
    """An API endpoint parameter."""
    name: str
    location: ParameterLocation = ModelField(alias="in", default=ParameterLocation.QUERY)
    type: str | None = None
    required: bool = False
    description: str | None = None
    default_value: str | None = ModelField(alias="defaultValue", default=None)

    model_config = _FROZEN


class Response(BaseModel):
    """An API endpoint response keyed by status code."""
    code: str
    description: str | None = None
    schema_type: str | None = ModelField(alias="schemaType", default=None)
    schema_items: str | None = ModelField(alias="schemaItems", default=None)

    model_config = _FROZEN


class OpenAPIEndpoint(BaseModel):
    """An API endpoint exposed by the process."""
    path: str
    method: HttpMethod = HttpMethod.GET
    operation_id: str | None = ModelField(alias="operationId", default=None)
    summary: str | None = None
    description: str | None = None
    connection_ref: str | None = ModelField(alias="connectionRef", default=None)
    parameters: tuple[Parameter, ...] = ()
    responses: Mapping[str, Response] = ModelField(default_factory=lambda: _read_only({}))
    tags: frozenset[str] = frozenset()

    @field_validator("responses", mode="after")
    @classmethod
    def freeze_responses(cls, v):
        return _read_only(v)

    @field_serializer("responses")
    def dump_responses(self, v) -> dict[str, Response]:
        return dict(v)

    model_config = _FROZEN


class ParsedMetadata(BaseModel):
    """Root domain object produced by the parser."""

    # Process information
    process_name: str = ModelField(alias="processName", min_length=1)
    process_type: ProcessType = ModelField(alias="processType")
    version: str = "1.0"

    # Metadata
    description: str | None = None
    author: str | None = None
    created: date | None = None
    modified: date | None = None

    # Components
    connections: tuple[Connection, ...] = ()
    transformations: tuple[Transformation, ...] = ()
    openapi_endpoints: tuple[OpenAPIEndpoint, ...] = ModelField(alias="openApiEndpoints", default=())
    data_flow: DataFlow | None = ModelField(alias="dataFlow", default=None)

    additional_properties: Mapping[str, Any] = ModelField(
        alias="additionalProperties", default_factory=lambda: _read_only({})
    )

    @field_validator("additional_properties", mode="after")
    @classmethod
    def freeze_additional_properties(cls, v):
        return _read_only(v)

    @field_serializer("additional_properties")
    def dump_additional_properties(self, v) -> dict[str, Any]:
        return dict(v)

    def get_connection(self, connection_id: str) -> Connection | None:
        """Find connection by id."""
        for connection in self.connections:
            if connection.id == connection_id:
                return connection
        return None

    def get_transformation(self, transformation_id: str) -> Transformation | None:
        """Find transformation by id."""
        for transformation in self.transformations:
            if transformation.id == transformation_id:
                return transformation
        return None

    model_config = _FROZEN

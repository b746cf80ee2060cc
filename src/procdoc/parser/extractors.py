"""Specialized extractors for the sections of a process definition.

Extraction is tolerant: absent optional elements leave fields unset and
unknown enumerated values fall back to a default with a logged warning.
"""

import logging
from datetime import date

from ..models.domain import (
    AuthenticationType,
    Connection,
    ConnectionType,
    DataFlow,
    DataSource,
    DataTarget,
    Field,
    HttpMethod,
    OpenAPIEndpoint,
    Parameter,
    ParameterLocation,
    Response,
    TokenEnum,
    Transformation,
    TransformationType,
)
from ..xmltree import XmlNode

logger = logging.getLogger(__name__)


def optional_text(value: str | None) -> str | None:
    """Treat blank text as absent."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_enum(enum_type: type[TokenEnum], token: str | None, default: TokenEnum,
               label: str) -> TokenEnum:
    """Resolve a token, falling back to ``default`` when unknown."""
    member = enum_type.from_token(token)
    if member is None:
        logger.warning(f"Unknown {label}: {token!r}, defaulting to {default.value}")
        return default
    return member


def parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


def parse_int(value: str | None, label: str) -> int | None:
    value = optional_text(value)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Failed to parse {label}: {value!r}")
        return None


def parse_date(value: str | None, label: str) -> date | None:
    value = optional_text(value)
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.warning(f"Failed to parse {label} date: {value!r}")
        return None


class ConnectionExtractor:
    """Extracts connections from the ``connections`` section."""

    @staticmethod
    def extract(root: XmlNode) -> tuple[Connection, ...]:
        connections = tuple(
            ConnectionExtractor.extract_single(node)
            for node in root.collection("connections", "connection")
        )
        logger.debug(f"Found {len(connections)} connections")
        return connections

    @staticmethod
    def extract_single(node: XmlNode) -> Connection:
        authentication = node.child("authentication")
        authentication_type = None
        if authentication is not None:
            authentication_type = parse_enum(
                AuthenticationType, authentication.get("type"),
                AuthenticationType.NONE, "authentication type",
            )

        return Connection(
            id=(node.get("id") or "").strip(),
            name=optional_text(node.child_text("name")),
            type=parse_enum(ConnectionType, node.get("type"), ConnectionType.OTHER, "connection type"),
            url=optional_text(node.child_text("url")),
            host=optional_text(node.child_text("host")),
            port=parse_int(node.child_text("port"), "port"),
            database=optional_text(node.child_text("database")),
            authentication_type=authentication_type,
        )


class TransformationExtractor:
    """Extracts transformations and their fields."""

    @staticmethod
    def extract(root: XmlNode) -> tuple[Transformation, ...]:
        transformations = tuple(
            TransformationExtractor.extract_single(node)
            for node in root.collection("transformations", "transformation")
        )
        logger.debug(f"Found {len(transformations)} transformations")
        return transformations

    @staticmethod
    def extract_single(node: XmlNode) -> Transformation:
        return Transformation(
            id=(node.get("id") or "").strip(),
            name=optional_text(node.child_text("name")),
            type=parse_enum(
                TransformationType, node.get("type"),
                TransformationType.OTHER, "transformation type",
            ),
            description=optional_text(node.child_text("description")),
            expression=optional_text(node.child_text("expression")),
            condition=optional_text(node.child_text("condition")),
            input_fields=TransformationExtractor.extract_fields(node, "inputFields"),
            output_fields=TransformationExtractor.extract_fields(node, "outputFields"),
        )

    @staticmethod
    def extract_fields(node: XmlNode, container: str) -> tuple[Field, ...]:
        return tuple(
            Field(
                name=field_node.get("name", ""),
                type=optional_text(field_node.get("type")),
                description=optional_text(field_node.get("description")),
                required=parse_bool(field_node.get("required")),
            )
            for field_node in node.collection(container, "field")
        )


class EndpointExtractor:
    """Extracts API endpoints from the ``openapi`` section."""

    @staticmethod
    def extract(root: XmlNode) -> tuple[OpenAPIEndpoint, ...]:
        if root.child("openapi") is None:
            logger.debug("No OpenAPI section found")
            return ()
        endpoints = tuple(
            EndpointExtractor.extract_single(node)
            for node in root.collection("openapi", "endpoint")
        )
        logger.debug(f"Found {len(endpoints)} OpenAPI endpoints")
        return endpoints

    @staticmethod
    def extract_single(node: XmlNode) -> OpenAPIEndpoint:
        return OpenAPIEndpoint(
            path=node.get("path", ""),
            method=parse_enum(HttpMethod, node.get("method"), HttpMethod.GET, "HTTP method"),
            operation_id=optional_text(node.child_text("operationId")),
            summary=optional_text(node.child_text("summary")),
            description=optional_text(node.child_text("description")),
            connection_ref=optional_text(node.child_text("connectionRef") or node.get("connectionRef")),
            parameters=tuple(
                EndpointExtractor.extract_parameter(p)
                for p in node.collection("parameters", "parameter")
            ),
            responses={
                response.code: response
                for response in (
                    EndpointExtractor.extract_response(r)
                    for r in node.collection("responses", "response")
                )
            },
            tags=frozenset(
                tag.text for tag in node.collection("tags", "tag") if tag.text
            ),
        )

    @staticmethod
    def extract_parameter(node: XmlNode) -> Parameter:
        return Parameter(
            name=node.get("name", ""),
            location=parse_enum(
                ParameterLocation, node.get("in"),
                ParameterLocation.QUERY, "parameter location",
            ),
            type=optional_text(node.get("type")),
            required=parse_bool(node.get("required")),
            description=optional_text(node.get("description")),
            default_value=node.get("default"),
        )

    @staticmethod
    def extract_response(node: XmlNode) -> Response:
        schema = node.child("schema")
        return Response(
            code=node.get("code", ""),
            description=optional_text(node.child_text("description")),
            schema_type=schema.get("type") if schema is not None else None,
            schema_items=schema.get("items") if schema is not None else None,
        )


class DataFlowExtractor:
    """Extracts the data flow: source, transformation chain and target."""

    @staticmethod
    def extract(root: XmlNode) -> DataFlow | None:
        node = root.child("dataFlow")
        if node is None:
            logger.debug("No data flow found")
            return None

        source = node.child("source")
        target = node.child("target")
        return DataFlow(
            source=DataSource(
                connection_ref=optional_text(source.child_text("connectionRef")),
                entity=optional_text(source.child_text("entity")),
            ) if source is not None else None,
            target=DataTarget(
                connection_ref=optional_text(target.child_text("connectionRef")),
                entity=optional_text(target.child_text("entity")),
            ) if target is not None else None,
            transformation_refs=tuple(
                ref.text for ref in node.descendants("transformationRef") if ref.text
            ),
        )

"""Schema stage: structural conformance of a process document.

The rule set is declarative. ``ProcessTypeRules`` lists which top-level
sections a process type requires and allows; ``EntityRule`` lists the
required attributes and children, enumerated attributes and typed values of
each entity kind. Every violation is reported as an ERROR (never FATAL) with
the offending node's locator, so the parser can still attempt best-effort
extraction afterwards.
"""

import difflib
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType

from ..models.domain import (
    AuthenticationType,
    ConnectionType,
    HttpMethod,
    ParameterLocation,
    ProcessType,
    TokenEnum,
    TransformationType,
)
from ..models.validation import ValidationError
from ..xmltree import XmlDocument, XmlNode

logger = logging.getLogger(__name__)

ROOT_TAG = "process"
BOOLEAN_LITERALS = ("true", "false")
STATUS_CODE_PATTERN = re.compile(r"^[1-5][0-9]{2}$")


@dataclass(frozen=True)
class ProcessTypeRules:
    """Top-level sections required and allowed for one process type."""
    required_sections: tuple[str, ...]
    allowed_sections: frozenset[str]


@dataclass(frozen=True)
class EntityRule:
    """Structural rules for one kind of element."""
    required_attributes: tuple[str, ...] = ()
    required_children: tuple[str, ...] = ()
    enum_attributes: Mapping[str, type[TokenEnum]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    boolean_attributes: tuple[str, ...] = ()
    integer_children: tuple[str, ...] = ()
    date_children: tuple[str, ...] = ()


COMMON_SECTIONS = ("metadata", "connections", "transformations", "dataFlow")

PROCESS_TYPE_RULES: dict[ProcessType, ProcessTypeRules] = {
    ProcessType.CAI: ProcessTypeRules(
        required_sections=("metadata",),
        allowed_sections=frozenset(COMMON_SECTIONS + ("openapi",)),
    ),
    ProcessType.CDI: ProcessTypeRules(
        required_sections=("metadata",),
        allowed_sections=frozenset(COMMON_SECTIONS),
    ),
}

# Used when the declared process type is missing or unknown
FALLBACK_RULES = ProcessTypeRules(
    required_sections=("metadata",),
    allowed_sections=frozenset().union(*(r.allowed_sections for r in PROCESS_TYPE_RULES.values())),
)

PROCESS_RULE = EntityRule(
    required_attributes=("name", "type"),
    enum_attributes=MappingProxyType({"type": ProcessType}),
)
METADATA_RULE = EntityRule(date_children=("created", "modified"))
CONNECTION_RULE = EntityRule(
    required_attributes=("id", "type"),
    required_children=("name",),
    enum_attributes=MappingProxyType({"type": ConnectionType}),
    integer_children=("port",),
)
AUTHENTICATION_RULE = EntityRule(
    required_attributes=("type",),
    enum_attributes=MappingProxyType({"type": AuthenticationType}),
)
TRANSFORMATION_RULE = EntityRule(
    required_attributes=("id", "type"),
    required_children=("name",),
    enum_attributes=MappingProxyType({"type": TransformationType}),
)
FIELD_RULE = EntityRule(
    required_attributes=("name", "type"),
    boolean_attributes=("required",),
)
ENDPOINT_RULE = EntityRule(
    required_attributes=("path", "method"),
    enum_attributes=MappingProxyType({"method": HttpMethod}),
)
PARAMETER_RULE = EntityRule(
    required_attributes=("name",),
    enum_attributes=MappingProxyType({"in": ParameterLocation}),
    boolean_attributes=("required",),
)
RESPONSE_RULE = EntityRule(required_attributes=("code",))
FLOW_ENDPOINT_RULE = EntityRule(required_children=("connectionRef",))


def suggest(value: str, enum_type: type[TokenEnum]) -> str | None:
    """Suggest the closest legal spelling for an unknown enumerated value."""
    legal = {token.lower(): token for token in enum_type.tokens()}
    matches = difflib.get_close_matches(value.lower(), list(legal), n=1, cutoff=0.6)
    if matches:
        return f"did you mean '{legal[matches[0]]}'?"
    return None


class SchemaValidator:
    """Validates the structure of a process document for its declared type."""

    def __init__(self, type_rules: Mapping[ProcessType, ProcessTypeRules] | None = None):
        self.type_rules = dict(type_rules or PROCESS_TYPE_RULES)

    def validate(self, document: XmlDocument,
                 process_type: ProcessType | None = None) -> list[ValidationError]:
        """Validate a parsed document.

        Args:
            document: Tree built by the well-formedness stage
            process_type: Declared process type; derived from the root
                ``type`` attribute when omitted

        Returns:
            List of findings, empty when the document is fully conformant
        """
        root = document.root
        errors: list[ValidationError] = []

        if root.tag != ROOT_TAG:
            errors.append(ValidationError.error(
                "INVALID_ROOT_ELEMENT",
                f"Root element must be <{ROOT_TAG}>, found <{root.tag}>",
                **_locate(root),
            ))

        self._check_entity(root, PROCESS_RULE, "process", errors)

        if process_type is None:
            process_type = ProcessType.from_token(root.get("type"))
        rules = self.type_rules.get(process_type, FALLBACK_RULES) if process_type else FALLBACK_RULES

        self._check_sections(root, process_type, rules, errors)

        metadata = root.child("metadata")
        if metadata is not None:
            self._check_entity(metadata, METADATA_RULE, "metadata", errors)

        for connection in root.collection("connections", "connection"):
            self._check_connection(connection, errors)

        for transformation in root.collection("transformations", "transformation"):
            self._check_transformation(transformation, errors)

        if process_type is None or "openapi" in rules.allowed_sections:
            for endpoint in root.collection("openapi", "endpoint"):
                self._check_endpoint(endpoint, errors)

        data_flow = root.child("dataFlow")
        if data_flow is not None:
            for role in ("source", "target"):
                node = data_flow.child(role)
                if node is not None:
                    self._check_entity(node, FLOW_ENDPOINT_RULE, f"data flow {role}", errors)

        logger.debug(f"Schema validation found {len(errors)} issues")
        return errors

    def _check_sections(self, root: XmlNode, process_type: ProcessType | None,
                        rules: ProcessTypeRules, errors: list[ValidationError]) -> None:
        for section in rules.required_sections:
            if root.child(section) is None:
                errors.append(ValidationError.error(
                    "MISSING_ELEMENT",
                    f"Process is missing required <{section}> element",
                    **_locate(root),
                ))

        for node in root.children:
            if node.tag in rules.allowed_sections:
                continue
            if node.tag in FALLBACK_RULES.allowed_sections:
                errors.append(ValidationError.error(
                    "UNSUPPORTED_SECTION",
                    f"<{node.tag}> is not supported for {process_type.value} processes",
                    suggestion=f"remove <{node.tag}> or declare a process type that supports it",
                    **_locate(node),
                ))
            else:
                errors.append(ValidationError.warning(
                    "UNEXPECTED_ELEMENT",
                    f"Unknown top-level element <{node.tag}>",
                    **_locate(node),
                ))

    def _check_connection(self, node: XmlNode, errors: list[ValidationError]) -> None:
        self._check_entity(node, CONNECTION_RULE, "connection", errors)

        connection_type = ConnectionType.from_token(node.get("type"))
        if connection_type is not None:
            if connection_type.is_network:
                required = ("url",)
            elif connection_type.is_storage:
                required = ("host", "database")
            else:
                required = ()
            for tag in required:
                if not node.child_text(tag):
                    errors.append(ValidationError.error(
                        "MISSING_ELEMENT",
                        f"{connection_type.value} connection '{node.get('id', '')}' "
                        f"requires a <{tag}> element",
                        **_locate(node),
                    ))

        authentication = node.child("authentication")
        if authentication is not None:
            self._check_entity(authentication, AUTHENTICATION_RULE, "authentication", errors)

    def _check_transformation(self, node: XmlNode, errors: list[ValidationError]) -> None:
        self._check_entity(node, TRANSFORMATION_RULE, "transformation", errors)
        for container in ("inputFields", "outputFields"):
            for field_node in node.collection(container, "field"):
                self._check_entity(field_node, FIELD_RULE, "field", errors)

    def _check_endpoint(self, node: XmlNode, errors: list[ValidationError]) -> None:
        self._check_entity(node, ENDPOINT_RULE, "endpoint", errors)
        for parameter in node.collection("parameters", "parameter"):
            self._check_entity(parameter, PARAMETER_RULE, "parameter", errors)
        for response in node.collection("responses", "response"):
            self._check_entity(response, RESPONSE_RULE, "response", errors)
            code = response.get("code")
            if code and code != "default" and not STATUS_CODE_PATTERN.match(code):
                errors.append(ValidationError.error(
                    "INVALID_STATUS_CODE",
                    f"Response code '{code}' is not an HTTP status code",
                    suggestion="use a three digit status code or 'default'",
                    **_locate(response, "code"),
                ))

    def _check_entity(self, node: XmlNode, rule: EntityRule, label: str,
                      errors: list[ValidationError]) -> None:
        for attribute in rule.required_attributes:
            value = node.get(attribute)
            if value is None or not value.strip():
                errors.append(ValidationError.error(
                    "MISSING_ATTRIBUTE",
                    f"The {label} is missing required attribute '{attribute}'",
                    **_locate(node, attribute),
                ))

        for tag in rule.required_children:
            if not node.child_text(tag):
                errors.append(ValidationError.error(
                    "MISSING_ELEMENT",
                    f"The {label} is missing required element <{tag}>",
                    **_locate(node),
                ))

        for attribute, enum_type in rule.enum_attributes.items():
            value = node.get(attribute)
            if value and value.strip() and enum_type.from_token(value) is None:
                errors.append(ValidationError.error(
                    "INVALID_ENUM_VALUE",
                    f"Unknown {label} {attribute} '{value}'. "
                    f"Allowed: {', '.join(enum_type.tokens())}",
                    suggestion=suggest(value, enum_type),
                    **_locate(node, attribute),
                ))

        for attribute in rule.boolean_attributes:
            value = node.get(attribute)
            if value is not None and value.strip().lower() not in BOOLEAN_LITERALS:
                errors.append(ValidationError.error(
                    "INVALID_BOOLEAN",
                    f"Attribute '{attribute}' of {label} must be 'true' or 'false', got '{value}'",
                    suggestion="use 'true' or 'false'",
                    **_locate(node, attribute),
                ))

        for tag in rule.integer_children:
            child = node.child(tag)
            if child is not None and child.text and not child.text.isdigit():
                errors.append(ValidationError.error(
                    "INVALID_INTEGER",
                    f"<{tag}> of {label} must be a non-negative integer, got '{child.text}'",
                    **_locate(child),
                ))

        for tag in rule.date_children:
            child = node.child(tag)
            if child is not None and child.text:
                try:
                    date.fromisoformat(child.text)
                except ValueError:
                    errors.append(ValidationError.error(
                        "INVALID_DATE",
                        f"<{tag}> of {label} must be an ISO date (YYYY-MM-DD), got '{child.text}'",
                        **_locate(child),
                    ))


def _locate(node: XmlNode, attribute: str | None = None) -> dict:
    xpath = f"{node.xpath}/@{attribute}" if attribute else node.xpath
    return {"xpath": xpath, "line_number": node.line, "column_number": node.column}

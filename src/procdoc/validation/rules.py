"""Business-rule stage: semantic checks spanning several declared entities.

Each rule validates one cross-entity invariant. Rules share a ``RuleContext``
whose id namespace is built once per document, so reference checks are dict
lookups rather than rescans.
"""

import logging
import re
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field

from ..models.validation import ValidationError, ValidationWarning
from ..xmltree import XmlDocument, XmlNode

logger = logging.getLogger(__name__)

PROCESS_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

# Declaration kinds inferred from the element carrying the id
CONNECTION = "connection"
TRANSFORMATION = "transformation"


@dataclass(frozen=True)
class Declaration:
    """An element that declares an id."""
    id: str
    kind: str
    node: XmlNode


class IdNamespace:
    """Every declared id in a document, in document order."""

    def __init__(self, declarations: list[Declaration]):
        self.declarations = declarations
        self._by_id: dict[str, list[Declaration]] = defaultdict(list)
        for declaration in declarations:
            self._by_id[declaration.id].append(declaration)

    @classmethod
    def build(cls, document: XmlDocument) -> "IdNamespace":
        """Collect every element with a non-empty ``id`` attribute."""
        declarations = []
        for node in document.iter():
            identifier = (node.get("id") or "").strip()
            if identifier:
                declarations.append(Declaration(identifier, node.tag, node))
        return cls(declarations)

    def resolves(self, identifier: str, kind: str) -> bool:
        """Whether ``identifier`` is declared by an element of ``kind``."""
        return any(d.kind == kind for d in self._by_id.get(identifier, ()))

    def ids(self, kind: str) -> list[str]:
        return [d.id for d in self.declarations if d.kind == kind]

    def duplicates(self) -> list[Declaration]:
        """Second and later occurrences of every repeated id."""
        seen: set[str] = set()
        repeated = []
        for declaration in self.declarations:
            if declaration.id in seen:
                repeated.append(declaration)
            seen.add(declaration.id)
        return repeated

    def __len__(self) -> int:
        return len(self._by_id)


@dataclass
class RuleContext:
    """Document, namespace and findings shared by all rules in one run."""
    document: XmlDocument
    namespace: IdNamespace
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)

    @property
    def root(self) -> XmlNode:
        return self.document.root

    @property
    def data_flow(self) -> XmlNode | None:
        return self.root.child("dataFlow")

    def endpoints(self) -> list[XmlNode]:
        return self.root.collection("openapi", "endpoint")

    def add_error(self, code: str, message: str, node: XmlNode | None = None, **kwargs) -> None:
        if node is not None:
            kwargs.setdefault("xpath", node.xpath)
            kwargs.setdefault("line_number", node.line)
            kwargs.setdefault("column_number", node.column)
        self.errors.append(ValidationError.error(code, message, **kwargs))

    def add_warning(self, code: str, message: str, recommendation: str,
                    node: XmlNode | None = None) -> None:
        self.warnings.append(ValidationWarning(
            code=code,
            message=message,
            xpath=node.xpath if node is not None else None,
            line_number=node.line if node is not None else None,
            recommendation=recommendation,
        ))


@dataclass
class RuleOutcome:
    """Errors and advisory warnings produced by the business-rule stage."""
    errors: list[ValidationError]
    warnings: list[ValidationWarning]


class BusinessRule(ABC):
    """Base class for business rules."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Rule name for identification."""
        pass

    @abstractmethod
    def check(self, context: RuleContext) -> None:
        """Execute the rule, recording findings on the context."""
        pass


class UniqueIdRule(BusinessRule):
    """Ids are unique across all identified entities of a document."""

    @property
    def name(self) -> str:
        return "unique_ids"

    def check(self, context: RuleContext) -> None:
        for duplicate in context.namespace.duplicates():
            context.add_error(
                "DUPLICATE_ID",
                f"Duplicate id '{duplicate.id}' on <{duplicate.kind}>",
                duplicate.node,
                suggestion="give every connection and transformation a unique id",
            )


class ConnectionReferenceRule(BusinessRule):
    """Data-flow and endpoint connection references resolve to declared connections."""

    @property
    def name(self) -> str:
        return "connection_references"

    def check(self, context: RuleContext) -> None:
        data_flow = context.data_flow
        if data_flow is not None:
            for role in ("source", "target"):
                end = data_flow.child(role)
                if end is not None:
                    self._check_ref(context, end.child("connectionRef"), f"{role.capitalize()}")

        for endpoint in context.endpoints():
            ref_node = endpoint.child("connectionRef")
            label = f"Endpoint {endpoint.get('method', '')} {endpoint.get('path', '')}".strip()
            if ref_node is None and endpoint.get("connectionRef"):
                self._check_value(context, endpoint.get("connectionRef"), endpoint, label)
            else:
                self._check_ref(context, ref_node, label)

    def _check_ref(self, context: RuleContext, ref_node: XmlNode | None, label: str) -> None:
        if ref_node is not None and ref_node.text:
            self._check_value(context, ref_node.text, ref_node, label)

    def _check_value(self, context: RuleContext, ref: str, node: XmlNode, label: str) -> None:
        if not context.namespace.resolves(ref, CONNECTION):
            known = ", ".join(context.namespace.ids(CONNECTION)) or "none"
            context.add_error(
                "INVALID_CONNECTION_REF",
                f"{label} connection reference '{ref}' does not exist",
                node,
                suggestion=f"declared connections: {known}",
            )


class TransformationReferenceRule(BusinessRule):
    """Every transformationRef in the data flow resolves to a declared transformation."""

    @property
    def name(self) -> str:
        return "transformation_references"

    def check(self, context: RuleContext) -> None:
        data_flow = context.data_flow
        if data_flow is None:
            return
        for ref_node in data_flow.descendants("transformationRef"):
            if not ref_node.text:
                continue
            if not context.namespace.resolves(ref_node.text, TRANSFORMATION):
                known = ", ".join(context.namespace.ids(TRANSFORMATION)) or "none"
                context.add_error(
                    "INVALID_TRANSFORMATION_REF",
                    f"Transformation reference '{ref_node.text}' does not exist",
                    ref_node,
                    suggestion=f"declared transformations: {known}",
                )


class ProcessNameRule(BusinessRule):
    """Process names are at least three characters and identifier-like."""

    @property
    def name(self) -> str:
        return "process_name"

    def check(self, context: RuleContext) -> None:
        # A missing name is reported by the schema stage
        process_name = (context.root.get("name") or "").strip()
        if not process_name:
            return
        if len(process_name) < 3:
            context.add_warning(
                "PROCESS_NAME_SHORT",
                "Process name should be at least 3 characters",
                "Use a descriptive process name",
                context.root,
            )
        elif not PROCESS_NAME_PATTERN.match(process_name):
            context.add_warning(
                "PROCESS_NAME_INVALID",
                "Process name should start with a letter and contain only "
                "letters, numbers, and underscores",
                "Rename the process, e.g. 'Customer_Sync'",
                context.root,
            )


class UniqueEndpointRule(BusinessRule):
    """Endpoints do not repeat the same method and path."""

    @property
    def name(self) -> str:
        return "unique_endpoints"

    def check(self, context: RuleContext) -> None:
        seen: set[str] = set()
        for endpoint in context.endpoints():
            pair = f"{endpoint.get('method', '').upper()} {endpoint.get('path', '')}"
            if pair in seen:
                context.add_warning(
                    "DUPLICATE_ENDPOINTS",
                    f"Duplicate endpoint found: {pair}",
                    "Consider using unique paths for different operations",
                    endpoint,
                )
            seen.add(pair)


class TransformationDescriptionRule(BusinessRule):
    """Transformations carry descriptions for documentation purposes."""

    @property
    def name(self) -> str:
        return "transformation_descriptions"

    def check(self, context: RuleContext) -> None:
        missing = sum(
            1 for transformation in context.root.collection("transformations", "transformation")
            if not transformation.child_text("description")
        )
        if missing:
            context.add_warning(
                "MISSING_TRANSFORMATION_DESCRIPTIONS",
                f"{missing} transformation(s) are missing descriptions",
                "Add descriptions to transformations for better documentation",
            )


class DataFlowCompletenessRule(BusinessRule):
    """The process documents a complete data flow."""

    @property
    def name(self) -> str:
        return "data_flow_completeness"

    def check(self, context: RuleContext) -> None:
        data_flow = context.data_flow
        if data_flow is None:
            context.add_warning(
                "MISSING_DATA_FLOW",
                "No data flow defined in the process",
                "Define a data flow to document the complete data pipeline",
            )
            return

        for role in ("source", "target"):
            end = data_flow.child(role)
            if end is None or not end.child_text("entity"):
                context.add_warning(
                    "INCOMPLETE_DATA_FLOW",
                    f"Data flow is missing {role} definitions",
                    f"Define the {role} entity for the data flow",
                    data_flow,
                )


class UnusedConnectionRule(BusinessRule):
    """Declared connections are used by the data flow or an endpoint."""

    @property
    def name(self) -> str:
        return "unused_connections"

    def check(self, context: RuleContext) -> None:
        data_flow = context.data_flow
        if data_flow is None:
            return

        used = {node.text for node in context.root.descendants("connectionRef") if node.text}
        used.update(e.get("connectionRef") for e in context.endpoints() if e.get("connectionRef"))

        for declaration in context.namespace.declarations:
            if declaration.kind == CONNECTION and declaration.id not in used:
                context.add_warning(
                    "UNUSED_CONNECTION",
                    f"Connection '{declaration.id}' is never referenced",
                    "Remove the connection or reference it from the data flow",
                    declaration.node,
                )


def default_rules() -> list[BusinessRule]:
    """Default rule set, blocking rules first."""
    return [
        UniqueIdRule(),
        ConnectionReferenceRule(),
        TransformationReferenceRule(),
        ProcessNameRule(),
        UniqueEndpointRule(),
        TransformationDescriptionRule(),
        DataFlowCompletenessRule(),
        UnusedConnectionRule(),
    ]


class BusinessRuleValidator:
    """Runs business rules over a document's shared id namespace."""

    def __init__(self, rules: list[BusinessRule] | None = None):
        self.rules: list[BusinessRule] = rules if rules is not None else default_rules()

    def add_rule(self, rule: BusinessRule) -> None:
        """Add a business rule."""
        self.rules.append(rule)

    def validate(self, document: XmlDocument) -> list[ValidationError]:
        """Return the blocking findings for a document."""
        return self.evaluate(document).errors

    def evaluate(self, document: XmlDocument) -> RuleOutcome:
        """Run every rule and return errors plus advisory warnings.

        Args:
            document: Tree built by the well-formedness stage

        Returns:
            RuleOutcome with errors and warnings in rule order
        """
        context = RuleContext(document=document, namespace=IdNamespace.build(document))
        logger.debug(f"Running {len(self.rules)} business rules over {len(context.namespace)} ids")

        for rule in self.rules:
            try:
                rule.check(context)
            except Exception as e:
                logger.error(f"Rule {rule.name} failed with error: {e}")
                context.add_error("RULE_EXECUTION_FAILED", f"Rule {rule.name} failed: {e}")

        logger.debug(
            f"Business rules finished: {len(context.errors)} errors, "
            f"{len(context.warnings)} warnings"
        )
        return RuleOutcome(errors=context.errors, warnings=context.warnings)

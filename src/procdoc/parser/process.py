"""Parser turning process-definition files into ``ParsedMetadata``.

The parser assumes nothing about prior validation: it reads the file itself,
parses it with defusedxml and raises ``ParsingException`` only for input it
cannot map at all (unreadable file, malformed XML, wrong root element, no
process name). Everything else is tolerated with a logged warning.
"""

import logging
from pathlib import Path
from typing import Any

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import ParseError

from ..config import ProcdocConfig, create_default_config
from ..exceptions import ParsingException
from ..models.domain import ParsedMetadata, ProcessType
from ..validation.service import ValidationService
from ..xmltree import XmlNode, load_document
from .extractors import (
    ConnectionExtractor,
    DataFlowExtractor,
    EndpointExtractor,
    TransformationExtractor,
    optional_text,
    parse_date,
    parse_enum,
)

logger = logging.getLogger(__name__)

ROOT_ELEMENT = "process"
KNOWN_ROOT_ATTRIBUTES = frozenset({"name", "type", "version"})
KNOWN_METADATA_CHILDREN = frozenset({"description", "author", "created", "modified"})


class ProcessParser:
    """Parser for process-definition XML files.

    Usage:
        parser = ProcessParser()
        metadata = parser.parse(Path("customer-sync.xml"))
        print(metadata.process_name, len(metadata.connections))
    """

    def __init__(self, config: ProcdocConfig | None = None):
        """Initialize parser.

        Args:
            config: Optional configuration; only the ``parser`` section is used
        """
        self.config = config or create_default_config()

    def parse(self, xml_file: Path) -> ParsedMetadata:
        """Parse a process-definition file.

        Args:
            xml_file: Path to the file

        Returns:
            ParsedMetadata for the file

        Raises:
            ParsingException: If the file cannot be read or is not a process
                definition
        """
        xml_file = Path(xml_file)
        logger.info(f"Parsing XML file: {xml_file}")
        try:
            data = xml_file.read_bytes()
        except OSError as e:
            raise ParsingException(
                "XML file does not exist or is not readable", str(xml_file), cause=e
            ) from e

        metadata = self.parse_content(data, str(xml_file))
        logger.info(f"Successfully parsed XML: {metadata.process_name}")
        return metadata

    def parse_content(self, data: bytes, source: str = "<string>") -> ParsedMetadata:
        """Parse in-memory XML content.

        Args:
            data: Raw XML bytes (a str is encoded as UTF-8)
            source: Label used in error messages

        Returns:
            ParsedMetadata for the content
        """
        if isinstance(data, str):
            data = data.encode("utf-8")

        try:
            document = load_document(data, forbid_dtd=self.config.parser.forbid_dtd)
        except (ParseError, DefusedXmlException) as e:
            raise ParsingException("Failed to parse XML", source, cause=e) from e

        return self._build(document.root, source)

    def parse_validated(self, xml_file: Path, service: ValidationService | None = None) -> ParsedMetadata:
        """Validate a file first and parse it only when it is valid.

        Args:
            xml_file: Path to the file
            service: Validation service to use; a new one is created when omitted

        Raises:
            ParsingException: Carrying the rendered blocking errors when the
                file is invalid
        """
        xml_file = Path(xml_file)
        service = service or ValidationService(self.config)
        result = service.validate_complete(xml_file)
        if not result.valid:
            raise ParsingException(
                "XML validation failed",
                str(xml_file),
                errors=[str(error) for error in result.errors if error.blocking],
            )
        return self.parse(xml_file)

    def _build(self, root: XmlNode, source: str) -> ParsedMetadata:
        if root.tag != ROOT_ELEMENT:
            raise ParsingException(
                f"Root element must be '{ROOT_ELEMENT}', found '{root.tag}'", source
            )

        process_name = optional_text(root.get("name"))
        if process_name is None:
            raise ParsingException("Process name is required", source)

        process_type = parse_enum(ProcessType, root.get("type"), ProcessType.CAI, "process type")
        metadata = root.child("metadata")

        return ParsedMetadata(
            process_name=process_name,
            process_type=process_type,
            version=optional_text(root.get("version")) or self.config.parser.default_version,
            description=self._metadata_text(metadata, "description"),
            author=self._metadata_text(metadata, "author"),
            created=parse_date(self._metadata_text(metadata, "created"), "created"),
            modified=parse_date(self._metadata_text(metadata, "modified"), "modified"),
            connections=ConnectionExtractor.extract(root),
            transformations=TransformationExtractor.extract(root),
            openapi_endpoints=EndpointExtractor.extract(root),
            data_flow=DataFlowExtractor.extract(root),
            additional_properties=self._additional_properties(root, metadata),
        )

    @staticmethod
    def _metadata_text(metadata: XmlNode | None, tag: str) -> str | None:
        if metadata is None:
            return None
        return optional_text(metadata.child_text(tag))

    def _additional_properties(self, root: XmlNode, metadata: XmlNode | None) -> dict[str, Any]:
        """Collect unknown root attributes and metadata children in document order."""
        if not self.config.parser.collect_additional_properties:
            return {}

        properties: dict[str, Any] = {
            name: value
            for name, value in root.attributes.items()
            if name not in KNOWN_ROOT_ATTRIBUTES
        }
        if metadata is not None:
            for node in metadata.children:
                if node.tag not in KNOWN_METADATA_CHILDREN:
                    properties.setdefault(node.tag, node.text)
        return properties

"""Well-formedness stage: confirms the input is syntactically valid XML."""

import logging
from dataclasses import dataclass, field

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import ParseError

from ..models.validation import ValidationError
from ..xmltree import XmlDocument, load_document

logger = logging.getLogger(__name__)

MALFORMED_XML = "MALFORMED_XML"
UNSAFE_XML = "UNSAFE_XML"


@dataclass
class WellFormednessOutcome:
    """Outcome of the well-formedness stage."""
    well_formed: bool
    document: XmlDocument | None = None
    errors: list[ValidationError] = field(default_factory=list)


class WellFormednessChecker:
    """Builds the shared document tree or reports a single FATAL error."""

    def __init__(self, forbid_dtd: bool = True):
        self.forbid_dtd = forbid_dtd

    def check(self, data: bytes) -> WellFormednessOutcome:
        """Check raw file bytes for well-formedness.

        Args:
            data: Raw file content

        Returns:
            WellFormednessOutcome carrying the parsed document on success, or
            exactly one FATAL error on failure
        """
        if not data.strip():
            return self._fatal(MALFORMED_XML, "XML content is empty", 1, 1)

        try:
            document = load_document(data, forbid_dtd=self.forbid_dtd)
        except ParseError as e:
            line, column = getattr(e, "position", (None, None))
            # expat offsets are 0-based
            column = column + 1 if column is not None else None
            return self._fatal(MALFORMED_XML, f"XML is not well-formed: {e}", line, column)
        except DefusedXmlException as e:
            return self._fatal(UNSAFE_XML, f"XML uses a forbidden construct: {e}")

        logger.debug(
            f"XML is well-formed: root <{document.root.tag}>, "
            f"{document.element_count} elements"
        )
        return WellFormednessOutcome(well_formed=True, document=document)

    def _fatal(self, code: str, message: str,
               line: int | None = None, column: int | None = None) -> WellFormednessOutcome:
        logger.warning(f"Well-formedness check failed: {message}")
        error = ValidationError.fatal(code, message, line_number=line, column_number=column)
        return WellFormednessOutcome(well_formed=False, errors=[error])

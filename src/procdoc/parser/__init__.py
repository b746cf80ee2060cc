"""Conversion of process-definition files into the domain model."""

from .extractors import ConnectionExtractor, DataFlowExtractor, EndpointExtractor, TransformationExtractor
from .process import ProcessParser

__all__ = [
    "ProcessParser",
    "ConnectionExtractor",
    "TransformationExtractor",
    "EndpointExtractor",
    "DataFlowExtractor",
]

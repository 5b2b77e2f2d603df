"""Source loader — parse any supported schema notation into a CanonicalSchema."""

from schema_synth.source_loader.base import BaseParser, SourceFormat
from schema_synth.source_loader.ddl_parser import DDLParser
from schema_synth.source_loader.detector import FormatDetector, TaggedInput
from schema_synth.source_loader.document_parser import DocumentParser
from schema_synth.source_loader.interface_parser import InterfaceParser
from schema_synth.source_loader.json_schema_parser import JsonSchemaParser
from schema_synth.source_loader.loader import get_parser, parse_schema

"""Parsers for the three pipeline inputs"""

from ._parser_kit import ParseResult, compute_frame_digest
from .license_parser import parse_license_file, parse_license_frame
from .region_parser import RegionDefinition, build_region_definitions, load_region_definitions
from .zip_parser import parse_zip_file, parse_zip_frame

__all__ = [
    'ParseResult',
    'RegionDefinition',
    'build_region_definitions',
    'compute_frame_digest',
    'load_region_definitions',
    'parse_license_file',
    'parse_license_frame',
    'parse_zip_file',
    'parse_zip_frame',
]

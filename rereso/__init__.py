"""rereso: research software artifact descriptions.

Describe benchmark sets, tools and behavioral log archives as immutable value
objects, read and write them as (optionally compressed) JSON, JSON5 or YAML
documents, and validate documents against the bundled, versioned schemas.

Importing the package registers the codecs of all artifact types.
"""

__all__ = ['Benchmark',
           'BenchmarkSet',
           'CustomLicense',
           'DataFormat',
           'License',
           'Log',
           'LogArchive',
           'LogEntry',
           'Metadata',
           'SpdxLicense',
           'Split',
           'Tool',
           'ToolCommand']

import logging

from rereso.datamodel import Benchmark
from rereso.datamodel import BenchmarkSet
from rereso.datamodel import CustomLicense
from rereso.datamodel import DataFormat
from rereso.datamodel import License
from rereso.datamodel import Metadata
from rereso.datamodel import SpdxLicense
from rereso.datamodel import Tool
from rereso.datamodel import ToolCommand
from rereso.log import Log
from rereso.log import LogArchive
from rereso.log import LogEntry
from rereso.log import Split

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

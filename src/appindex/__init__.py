"""Build per-project and master catalog indexes from app fragment files."""

from .loader import AppLoader
from .master import MasterIndexBuilder
from .metadata import MetadataFetcher
from .pipeline import BuildReport, IndexPipeline, build_indexes
from .project import ProjectIndexBuilder
from .schema import AppRecord, MasterIndex, ProjectConfig, ProjectIndex

__all__ = [
    "AppLoader",
    "AppRecord",
    "BuildReport",
    "IndexPipeline",
    "MasterIndex",
    "MasterIndexBuilder",
    "MetadataFetcher",
    "ProjectConfig",
    "ProjectIndex",
    "ProjectIndexBuilder",
    "build_indexes",
]

"""Inkwell - turns a directory of frontmatter markdown into an ordered publication set."""

from inkwell.config import BuildConfig, load_config
from inkwell.content import BuildFailed, Document, DocumentLoader, MetadataValidator
from inkwell.links import ReferenceResolver
from inkwell.publish import BuildResult, PublicationSet, build_publication_set, run_build
from inkwell.talks import TalkIndex, TalksParser

__version__ = "0.1.0"

__all__ = [
    "BuildConfig",
    "BuildFailed",
    "BuildResult",
    "Document",
    "DocumentLoader",
    "MetadataValidator",
    "PublicationSet",
    "ReferenceResolver",
    "TalkIndex",
    "TalksParser",
    "build_publication_set",
    "load_config",
    "run_build",
]

"""Publishing: the ordered publication set and the build pipeline around it."""

from inkwell.publish.builder import PublicationSet, build_publication_set, is_published
from inkwell.publish.manifest import Manifest, write_manifest
from inkwell.publish.pipeline import BuildResult, parse_documents, run_build

__all__ = [
    "BuildResult",
    "Manifest",
    "PublicationSet",
    "build_publication_set",
    "is_published",
    "parse_documents",
    "run_build",
    "write_manifest",
]

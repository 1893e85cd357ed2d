"""Link references: scanning markdown bodies and resolving them to URLs."""

from inkwell.links.markdown import LinkDefinition, LinkUse, normalize_label, scan_definitions, scan_links
from inkwell.links.resolver import ReferenceResolver, ResolvedLink

__all__ = [
    "LinkDefinition",
    "LinkUse",
    "ReferenceResolver",
    "ResolvedLink",
    "normalize_label",
    "scan_definitions",
    "scan_links",
]

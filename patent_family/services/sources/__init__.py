"""External patent data sources."""

from .documents import DocumentStoreClient, ParsedDocument, parse_document  # noqa: F401
from .registry import RegistryClient, RegistryPatent  # noqa: F401

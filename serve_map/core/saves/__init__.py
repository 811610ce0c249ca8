from serve_map.core.saves.catalog_cache import CatalogCache, CatalogSnapshot
from serve_map.core.saves.catalog_service import SaveCatalogService
from serve_map.core.saves.models import Catalog, SaveGroup, SaveRecord, SaveScanResult, VersionPolicy
from serve_map.core.saves.naming import DEFAULT_NAME_PATTERN, ParsedSaveName, RegexSaveNameParser, SaveNameParser
from serve_map.core.saves.resolver import SaveResolver
from serve_map.core.saves.scanner_service import SaveScannerService

__all__ = [
    "Catalog",
    "CatalogCache",
    "CatalogSnapshot",
    "DEFAULT_NAME_PATTERN",
    "ParsedSaveName",
    "RegexSaveNameParser",
    "SaveCatalogService",
    "SaveGroup",
    "SaveNameParser",
    "SaveRecord",
    "SaveResolver",
    "SaveScanResult",
    "SaveScannerService",
    "VersionPolicy",
]

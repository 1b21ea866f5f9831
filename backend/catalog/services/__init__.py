from .reads import CatalogReader
from .writes import CatalogWriter, ImageUpload, WriteResult

__all__ = ["CatalogReader", "CatalogWriter", "ImageUpload", "WriteResult"]

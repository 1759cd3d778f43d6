from spacescan.services.file_service import FileService
from spacescan.services.duplicate_service import DuplicateService
from spacescan.services.export_service import ExportService, ExportFormat

__all__ = ["FileService", "DuplicateService", "ExportService", "ExportFormat"]

from .classifier import classify_files
from .file_scanner import FileScanner, ScanResult
from .utils import FileMeta, SyncReport

__all__ = ["FileMeta", "FileScanner", "ScanResult", "SyncReport", "classify_files"]

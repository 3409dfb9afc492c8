"""sheet-viewer — Browse, filter and re-export spreadsheets held by a parsing service."""

__version__ = "0.1.0"

DEFAULT_API_URL = "http://localhost:5000"
DEFAULT_SHEET_TITLE = "Sheet1"
DEFAULT_EXPORT_STEM = "data"

COLUMN_LABELS: dict[str, str] = {
    "no_das": "No DAS",
    "nama_das": "Wilayah",
    "luas_das": "Luas DAS",
}

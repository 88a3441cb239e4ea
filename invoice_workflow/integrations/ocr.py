from abc import ABC, abstractmethod

from invoice_workflow.schemas.ocr import OcrResult


class OcrEngine(ABC):
    """Extracts invoice fields from a stored document.

    Implementations may raise; invoice upload treats any error as "no data
    extracted" and carries on.
    """

    @abstractmethod
    def extract_invoice_data(self, file_path: str) -> OcrResult:
        ...

    @abstractmethod
    def is_available(self) -> bool:
        ...


class NullOcrEngine(OcrEngine):
    """Used when no OCR engine is configured"""

    def extract_invoice_data(self, file_path: str) -> OcrResult:
        return OcrResult(warnings=["OCR engine not configured, enter invoice details manually"])

    def is_available(self) -> bool:
        return False

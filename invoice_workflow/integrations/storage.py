import uuid
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

from invoice_workflow.core.exceptions import ValidationError
from invoice_workflow.core.logging import log


class LocalFileStorage:
    """Stores uploaded invoice documents under a base directory.

    Only the relative path returned by ``save_invoice_file`` is persisted on the
    invoice; everything else is derived from it.
    """

    def __init__(
        self,
        base_dir: str,
        url_prefix: str = "/uploads",
        allowed_extensions: Optional[Iterable[str]] = None,
        max_bytes: Optional[int] = None,
    ):
        self.base_dir = Path(base_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.allowed_extensions = {e.lower() for e in allowed_extensions} if allowed_extensions else None
        self.max_bytes = max_bytes

    def save_invoice_file(self, company_id: int, filename: str, content: bytes) -> str:
        extension = Path(filename or "").suffix.lower()
        if self.allowed_extensions is not None and extension not in self.allowed_extensions:
            raise ValidationError(f"File type '{extension or 'unknown'}' is not allowed", field="file")
        if not content:
            raise ValidationError("Uploaded file is empty", field="file")
        if self.max_bytes is not None and len(content) > self.max_bytes:
            raise ValidationError(f"File exceeds the {self.max_bytes} byte limit", field="file")

        today = date.today()
        relative = Path("invoices") / str(company_id) / f"{today:%Y}" / f"{today:%m}" / f"{uuid.uuid4().hex}{extension}"
        target = self.base_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

        log.info(f"Stored invoice file {relative.as_posix()} ({len(content)} bytes)")
        return relative.as_posix()

    def get_file_url(self, relative_path: str) -> str:
        return f"{self.url_prefix}/{relative_path}"

    def get_physical_path(self, relative_path: str) -> str:
        return str(self.base_dir / relative_path)

    def delete_file(self, relative_path: str) -> None:
        path = self.base_dir / relative_path
        if path.exists():
            path.unlink()
            log.info(f"Deleted invoice file {relative_path}")

    def file_exists(self, relative_path: str) -> bool:
        return (self.base_dir / relative_path).is_file()

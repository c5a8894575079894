"""Reference catalog - loads bundled HCPCS codes and their work RVU values."""

import logging
import math
import threading
from typing import Dict, List, Optional

from ..core.config import CATALOG_RESOURCE_NAME
from ..core.errors import CatalogNotFoundError, CatalogParseError
from ..core.platform_utils import get_bundled_resource_path
from ..data.models import ProcedureCode

logger = logging.getLogger(__name__)


def parse_csv_line(line: str) -> List[str]:
    """Split one line on commas, honoring double-quoted fields.

    A quote toggles the in-quotes state and is dropped. Escaped quotes are
    not unescaped.
    """
    fields = []
    current = []
    inside_quotes = False

    for char in line:
        if char == '"':
            inside_quotes = not inside_quotes
        elif char == ',' and not inside_quotes:
            fields.append(''.join(current))
            current = []
        else:
            current.append(char)

    fields.append(''.join(current))
    return fields


def parse_catalog_row(line: str) -> ProcedureCode:
    """Parse a data row into a ProcedureCode.

    Raises:
        CatalogParseError: fewer than 4 fields, or work RVU is not a number
    """
    fields = parse_csv_line(line)
    if len(fields) < 4:
        raise CatalogParseError(f"expected 4 fields, got {len(fields)}")

    code, description, status_code, work_rvu_text = (f.strip() for f in fields[:4])
    try:
        work_rvu = float(work_rvu_text)
    except ValueError:
        raise CatalogParseError(f"work RVU '{work_rvu_text}' is not a number")
    if not math.isfinite(work_rvu) or work_rvu < 0:
        raise CatalogParseError(f"work RVU '{work_rvu_text}' is out of range")

    return ProcedureCode(code=code, description=description, status_code=status_code, work_rvu=work_rvu)


class ReferenceCatalog:
    """Read-only snapshot of the bundled HCPCS -> work RVU dataset.

    load() is idempotent and thread-safe: concurrent callers wait for the
    load already in flight. A failed load leaves the catalog empty and can
    be retried.
    """

    def __init__(self, source_path: Optional[str] = None):
        self.source_path = source_path or get_bundled_resource_path(CATALOG_RESOURCE_NAME)
        self.codes: List[ProcedureCode] = []
        self.is_loaded = False
        self.error: Optional[str] = None
        self.skipped_rows = 0
        self._rvu_by_code: Dict[str, float] = {}
        self._code_by_key: Dict[str, ProcedureCode] = {}
        self._lock = threading.Lock()

    def load(self) -> bool:
        """Load the catalog. Returns True once loaded, False if the file is unavailable."""
        if self.is_loaded:
            return True

        with self._lock:
            # Another thread may have finished while we waited
            if self.is_loaded:
                return True
            try:
                lines = self._read_lines()
            except CatalogNotFoundError as e:
                self.error = str(e)
                logger.error(self.error)
                return False

            self._build(lines)
            self.error = None
            self.is_loaded = True
            logger.info(f"Loaded {len(self.codes)} HCPCS codes from {self.source_path} "
                        f"({self.skipped_rows} rows skipped)")
            return True

    def _read_lines(self) -> List[str]:
        try:
            with open(self.source_path, 'r', encoding='utf-8') as f:
                return f.read().splitlines()
        except FileNotFoundError:
            raise CatalogNotFoundError(f"RVU codes file not found: {self.source_path}")
        except (OSError, UnicodeDecodeError) as e:
            raise CatalogNotFoundError(f"Failed to load RVU codes: {e}")

    def _build(self, lines: List[str]):
        codes = []
        skipped = 0

        for index, line in enumerate(lines):
            # Header row
            if index == 0:
                continue
            if not line.strip():
                continue
            try:
                codes.append(parse_catalog_row(line))
            except CatalogParseError as e:
                skipped += 1
                logger.debug(f"Skipping catalog row {index + 1}: {e}")

        rvu_by_code = {}
        code_by_key = {}
        for entry in codes:
            key = entry.code.upper()
            # First occurrence wins on duplicate codes
            if key not in rvu_by_code:
                rvu_by_code[key] = entry.work_rvu
                code_by_key[key] = entry

        self.codes = codes
        self.skipped_rows = skipped
        self._rvu_by_code = rvu_by_code
        self._code_by_key = code_by_key

    def lookup_rvu(self, code: str) -> Optional[float]:
        """Work RVU for a code (case-insensitive), or None if unknown."""
        if not code:
            return None
        return self._rvu_by_code.get(code.upper())

    def get_code(self, code: str) -> Optional[ProcedureCode]:
        if not code:
            return None
        return self._code_by_key.get(code.upper())

    def __len__(self):
        return len(self.codes)


__all__ = ['ReferenceCatalog', 'parse_csv_line', 'parse_catalog_row']

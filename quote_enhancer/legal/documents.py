"""Read-only access to per-country legal documents.

One JSON document exists per ISO country code, named
``{file_prefix}{CODE}.json`` inside the data directory, with the structure
``{"results": [{"data": {"termination": ..., "payroll": ...,
"contribution": {...}, "common_benefits": [...], "remote_work": ...}}]}``.
Documents are cached for the lifetime of the service; clear_cache() is the
only way to drop them.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from quote_enhancer.domain.legal import LegalAvailability
from quote_enhancer.logging import get_logger

logger = get_logger(__name__, component="legal")

DEFAULT_FILE_PREFIX = "papaya_global_data_"
DEFAULT_CODE_ALIASES = {
    "UK": "GB",
    "EL": "GR",
}


class LegalDataService:
    """Loads and caches country legal documents from a directory.

    Attributes:
        data_dir: Directory holding one JSON document per country
        file_prefix: File name prefix preceding the country code
        aliases: Non-standard code to ISO code mapping
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        file_prefix: str = DEFAULT_FILE_PREFIX,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.file_prefix = file_prefix
        self.aliases = {k.upper(): v.upper() for k, v in (aliases or DEFAULT_CODE_ALIASES).items()}
        self._documents: Dict[str, Optional[Dict[str, Any]]] = {}

    def resolve_code(self, country_code: str) -> str:
        """Apply the alias table to a country code."""
        raw = (country_code or "").strip().upper()
        return self.aliases.get(raw, raw)

    def get_country_data(self, country_code: str) -> Optional[Dict[str, Any]]:
        """Return the legal document record (``results[0]``) for a country.

        Args:
            country_code: ISO code or known alias

        Returns:
            Document record containing a ``data`` mapping, or None if no
            document exists for the country
        """
        key = (country_code or "").strip().upper()
        if key in self._documents:
            return self._documents[key]

        document = self._load(key)
        if document is not None:
            self._documents[key] = document
        return document

    def get_country_core_data(self, country_code: str) -> Optional[Dict[str, Any]]:
        """Return only the ``data`` section of a country's legal document."""
        record = self.get_country_data(country_code)
        if record is None:
            return None
        core = record.get("data")
        return core if isinstance(core, dict) else None

    def get_availability(self, country_code: str) -> LegalAvailability:
        """Report which legal sections a country document carries."""
        core = self.get_country_core_data(country_code) or {}
        contribution = core.get("contribution") or {}
        return LegalAvailability(
            termination=bool(core.get("termination")),
            payroll=bool(core.get("payroll")),
            contributions=bool(
                isinstance(contribution, Mapping)
                and (contribution.get("employer_contributions") or contribution.get("employee_contributions"))
            ),
            common_benefits=bool(core.get("common_benefits")),
            remote_work=bool(core.get("remote_work")),
            leave=bool(core.get("leave")),
        )

    def available_countries(self) -> List[str]:
        """List the country codes that have a legal document, sorted."""
        if not self.data_dir.is_dir():
            logger.warning(
                "Legal data directory does not exist",
                extra={"event": "legal.directory.missing", "data_dir": str(self.data_dir)},
            )
            return []
        codes = [
            path.stem[len(self.file_prefix):].upper()
            for path in self.data_dir.glob(f"{self.file_prefix}*.json")
        ]
        return sorted(code for code in codes if code)

    def clear_cache(self) -> None:
        """Drop every cached document."""
        self._documents.clear()

    def _candidate_paths(self, key: str) -> List[Path]:
        resolved = self.resolve_code(key)
        paths = [self.data_dir / f"{self.file_prefix}{resolved}.json"]
        if resolved != key:
            paths.append(self.data_dir / f"{self.file_prefix}{key}.json")
        return paths

    def _load(self, key: str) -> Optional[Dict[str, Any]]:
        path = next((p for p in self._candidate_paths(key) if p.is_file()), None)
        if path is None:
            logger.warning(
                "Legal document not found",
                extra={"event": "legal.document.missing", "country_code": key},
            )
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(
                "Failed to read legal document",
                extra={
                    "event": "legal.document.unreadable",
                    "country_code": key,
                    "path": str(path),
                    "error": str(e),
                },
            )
            return None

        results = payload.get("results") if isinstance(payload, dict) else None
        if isinstance(results, list) and results and isinstance(results[0], dict):
            record = results[0]
        elif isinstance(payload, dict):
            record = payload
        else:
            return None

        logger.debug(
            "Loaded legal document",
            extra={"event": "legal.document.loaded", "country_code": key, "path": str(path)},
        )
        return record

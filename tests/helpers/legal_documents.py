"""Fixture-based legal documents for testing.

Legal documents are kept in a YAML fixture file and written out as the JSON
files LegalDataService reads, so tests never depend on real country data.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import yaml

DEFAULT_FIXTURE = Path(__file__).parent.parent / "fixtures" / "legal_documents.yaml"
FILE_PREFIX = "papaya_global_data_"


def load_fixture_documents(fixture_path: Path = DEFAULT_FIXTURE) -> Dict[str, Dict[str, Any]]:
    """Load legal document fixtures from YAML.

    Args:
        fixture_path: Path to YAML file containing a ``countries`` mapping

    Returns:
        Dictionary mapping country codes to document ``data`` sections

    Raises:
        FileNotFoundError: If fixture file doesn't exist
    """
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture file not found: {fixture_path}")

    with open(fixture_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return data.get("countries", {})


def write_legal_documents(
    data_dir: Path,
    codes: Optional[Iterable[str]] = None,
    fixture_path: Path = DEFAULT_FIXTURE,
) -> Path:
    """Write fixture documents as ``{prefix}{CODE}.json`` files.

    Args:
        data_dir: Target directory (created if missing)
        codes: Country codes to write; all fixtures when None
        fixture_path: YAML fixture file

    Returns:
        data_dir
    """
    documents = load_fixture_documents(fixture_path)
    data_dir.mkdir(parents=True, exist_ok=True)
    for code in codes or documents:
        record = {"country": documents[code].get("country_name", code), "data": documents[code]["data"]}
        path = data_dir / f"{FILE_PREFIX}{code}.json"
        path.write_text(json.dumps({"results": [record]}), encoding="utf-8")
    return data_dir

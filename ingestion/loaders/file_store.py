"""
Document store writing one JSON file per document on the local disk.

Layout: ``<base_dir>/<collection_path>/<document_id>.json``
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple
import json
import logging
import os
import shutil
import tempfile

from ingestion.loaders.document_store import DocumentStore, apply_operation
from schemas.storage import BatchOperation, parse_address

logger = logging.getLogger(__name__)


class JSONFileStore(DocumentStore):
    """
    Local export of the document hierarchy.

    A commit first computes every resulting document in memory and writes
    the new files into a staging directory; only then are they moved into
    place and deleted documents removed. A failure while computing or
    staging leaves the tree untouched.
    """

    name = "local"

    def __init__(self, base_dir: str):
        self.base_dir = Path(base_dir)

    def _path(self, collection_path: str, document_id: str) -> Path:
        return self.base_dir / collection_path / f"{document_id}.json"

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)

    async def commit(self, operations: Sequence[BatchOperation]) -> None:
        # address -> (path, resulting body or None for delete)
        final: Dict[str, Tuple[Path, Optional[Dict[str, Any]]]] = {}

        for operation in operations:
            path = self._path(operation.collection_path, operation.document_id)
            current = final[operation.address][1] if operation.address in final else self._read(path)
            final[operation.address] = (path, apply_operation(current, operation))

        self.base_dir.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=".staging-", dir=self.base_dir))
        staged: List[Tuple[Path, Path]] = []

        try:
            for index, (path, body) in enumerate(final.values()):
                if body is None:
                    continue
                staged_file = staging / f"{index}.json"
                with staged_file.open("w", encoding="utf-8") as f:
                    json.dump(body, f, ensure_ascii=False, indent=2)
                staged.append((staged_file, path))

            for staged_file, path in staged:
                path.parent.mkdir(parents=True, exist_ok=True)
                os.replace(staged_file, path)

            for path, body in final.values():
                if body is None and path.exists():
                    path.unlink()
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        logger.debug(f"File commit applied {len(operations)} operations under {self.base_dir}")

    async def get(self, address: str) -> Optional[Dict[str, Any]]:
        collection_path, document_id = parse_address(address)
        return self._read(self._path(collection_path, document_id))

    async def list_collection(self, collection_path: str) -> Dict[str, Dict[str, Any]]:
        directory = self.base_dir / collection_path
        if not directory.is_dir():
            return {}
        return {
            path.stem: self._read(path)
            for path in sorted(directory.glob("*.json"))
        }

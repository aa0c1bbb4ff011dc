"""YAML-backed document store keyed by collection name."""

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

logger = logging.getLogger(__name__)

VEHICLES = "vehicles"
RESERVATIONS = "reservations"
DRIVERS = "drivers"
CHECKLISTS = "checklists"
CHECKLIST_RESPONSES = "checklist_responses"
USERS = "users"

COLLECTIONS = (VEHICLES, RESERVATIONS, DRIVERS, CHECKLISTS, CHECKLIST_RESPONSES, USERS)


class DocumentStore:
    """
    A directory of YAML files, one per collection.

    Each file holds a mapping of document id to document. Every write
    reloads the collection, applies the change and rewrites the file.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def path_for(self, collection: str) -> Path:
        """Get the YAML file backing a collection."""
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection '{collection}'")
        return self.data_dir / f"{collection}.yaml"

    def _load(self, collection: str) -> Dict[str, Dict[str, Any]]:
        path = self.path_for(collection)
        if not path.exists():
            return {}
        with open(path, "r") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader)
        return data or {}

    def _save(self, collection: str, data: Dict[str, Dict[str, Any]]) -> None:
        path = self.path_for(collection)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as fp:
            yaml.dump(
                data,
                fp,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
                width=120,
            )
        logger.debug("Wrote %d documents to %s", len(data), path)

    def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        """All documents in a collection, each with its 'id' merged in."""
        return [
            {"id": doc_id, **(doc or {})}
            for doc_id, doc in self._load(collection).items()
        ]

    def query_documents(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
        """Documents whose field equals value."""
        return [doc for doc in self.list_documents(collection) if doc.get(field) == value]

    def get_document(self, collection: str, doc_id: str) -> Dict[str, Any]:
        """
        Fetch one document by id.

        Raises KeyError if the document does not exist.
        """
        data = self._load(collection)
        if doc_id not in data:
            raise KeyError(f"No document '{doc_id}' in {collection}")
        return {"id": doc_id, **(data[doc_id] or {})}

    def add_document(self, collection: str, doc: Dict[str, Any]) -> str:
        """Insert a document under a fresh id and return the id."""
        data = self._load(collection)
        doc_id = uuid.uuid4().hex
        data[doc_id] = {k: v for k, v in doc.items() if k != "id"}
        self._save(collection, data)
        return doc_id

    def update_document(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> None:
        """
        Merge changes into an existing document.

        Raises KeyError if the document does not exist.
        """
        data = self._load(collection)
        if doc_id not in data:
            raise KeyError(f"No document '{doc_id}' in {collection}")
        doc = data[doc_id] or {}
        doc.update({k: v for k, v in changes.items() if k != "id"})
        data[doc_id] = doc
        self._save(collection, data)

    def delete_document(self, collection: str, doc_id: str) -> None:
        """
        Remove a document.

        Raises KeyError if the document does not exist.
        """
        data = self._load(collection)
        if doc_id not in data:
            raise KeyError(f"No document '{doc_id}' in {collection}")
        del data[doc_id]
        self._save(collection, data)

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

_MISSING = object()


@dataclass
class InsertOneResult:
    inserted_id: Any


@dataclass
class UpdateResult:
    matched_count: int
    modified_count: int
    upserted_id: Any = None


@dataclass
class DeleteResult:
    deleted_count: int


def _value(document: dict, key: str) -> Any:
    return document.get(key, _MISSING)


def _matches_condition(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
        present = None if value is _MISSING else value
        for op, arg in condition.items():
            if op == "$in":
                if present not in arg:
                    return False
            elif op == "$ne":
                if present == arg:
                    return False
            elif op == "$exists":
                if (value is not _MISSING) != bool(arg):
                    return False
            else:
                raise NotImplementedError(f"Unsupported query operator: {op}")
        return True

    if value is _MISSING:
        return condition is None
    return value == condition


def matches(document: dict, query: dict | None) -> bool:
    return all(_matches_condition(_value(document, k), c) for k, c in (query or {}).items())


def _sort_key(value: Any) -> tuple:
    # Missing and null sort before everything else, as in MongoDB
    if value is None or value is _MISSING:
        return (0, 0)
    return (1, value)


class FakeCursor:
    """Chainable cursor over a snapshot of matching documents"""

    def __init__(self, documents: list[dict]):
        self._documents = documents
        self._sorts: list[tuple[str, int]] = []
        self._limit = 0

    def sort(self, key_or_list, direction: int | None = None) -> "FakeCursor":
        if isinstance(key_or_list, str):
            self._sorts.append((key_or_list, direction or 1))
        else:
            self._sorts.extend(key_or_list)
        return self

    def limit(self, limit: int) -> "FakeCursor":
        self._limit = limit
        return self

    def _results(self) -> list[dict]:
        documents = list(self._documents)
        for key, direction in reversed(self._sorts):
            documents.sort(key=lambda d: _sort_key(d.get(key)), reverse=direction < 0)
        if self._limit:
            documents = documents[: self._limit]
        return documents

    async def to_list(self, length: int | None = None) -> list[dict]:
        documents = self._results()
        return documents if length is None else documents[:length]


@dataclass
class FakeCollection:
    """
    In-memory stand-in for a Motor collection.

    Supports the subset of the API the services use: equality filters plus
    $in/$ne/$exists, $set/$inc/$unset updates, and unique indexes.
    """

    name: str
    documents: list[dict] = field(default_factory=list)
    unique_indexes: list[tuple[str, ...]] = field(default_factory=list)

    async def create_index(self, keys, unique: bool = False, **kwargs) -> str:
        if isinstance(keys, str):
            keys = [(keys, 1)]
        fields = tuple(k for k, _ in keys)
        if unique and fields not in self.unique_indexes:
            self.unique_indexes.append(fields)
        return "_".join(f"{k}_{d}" for k, d in keys)

    def _check_unique(self, candidate: dict, ignore: dict | None = None) -> None:
        for fields in self.unique_indexes:
            key = tuple(candidate.get(f) for f in fields)
            for existing in self.documents:
                if existing is ignore:
                    continue
                if tuple(existing.get(f) for f in fields) == key:
                    raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name} index: {fields}")

    async def insert_one(self, document: dict) -> InsertOneResult:
        if "_id" not in document:
            document["_id"] = ObjectId()
        self._check_unique(document)
        self.documents.append(copy.deepcopy(document))
        return InsertOneResult(inserted_id=document["_id"])

    async def find_one(self, query: dict | None = None, projection: dict | None = None) -> dict | None:
        for document in self.documents:
            if matches(document, query):
                return copy.deepcopy(document)
        return None

    def find(self, query: dict | None = None, projection: dict | None = None) -> FakeCursor:
        return FakeCursor([copy.deepcopy(d) for d in self.documents if matches(d, query)])

    async def count_documents(self, query: dict | None = None) -> int:
        return sum(1 for d in self.documents if matches(d, query))

    async def update_one(self, query: dict, update: dict, upsert: bool = False) -> UpdateResult:
        for document in self.documents:
            if not matches(document, query):
                continue

            before = copy.deepcopy(document)
            updated = copy.deepcopy(document)
            for op, values in update.items():
                if op == "$set":
                    updated.update(values)
                elif op == "$inc":
                    for key, amount in values.items():
                        updated[key] = updated.get(key, 0) + amount
                elif op == "$unset":
                    for key in values:
                        updated.pop(key, None)
                elif op == "$setOnInsert":
                    continue
                else:
                    raise NotImplementedError(f"Unsupported update operator: {op}")

            self._check_unique(updated, ignore=document)
            document.clear()
            document.update(updated)
            return UpdateResult(matched_count=1, modified_count=int(before != document))

        if upsert:
            raise NotImplementedError("upsert is not supported by the fake store")
        return UpdateResult(matched_count=0, modified_count=0)

    async def delete_one(self, query: dict) -> DeleteResult:
        for index, document in enumerate(self.documents):
            if matches(document, query):
                del self.documents[index]
                return DeleteResult(deleted_count=1)
        return DeleteResult(deleted_count=0)


class FakeDatabase:
    """Attribute and item access both return the named collection"""

    def __init__(self, name: str = "test"):
        self.name = name
        self._collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(name=name)
        return self._collections[name]

    def __getattr__(self, name: str) -> FakeCollection:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]


class FakeMongoClient:
    def __init__(self):
        self._databases: dict[str, FakeDatabase] = {}

    def __getitem__(self, name: str) -> FakeDatabase:
        if name not in self._databases:
            self._databases[name] = FakeDatabase(name)
        return self._databases[name]

    def close(self) -> None:
        pass

"""
Data services: async CRUD for tasks and categories.

Two backends implement the same contract:
  - Memory*Service : records kept in process memory (camelCase), for local use
  - Remote*Service : records kept by a remote record API, reached over HTTP

Contract:
    get_all()             -> list            ([] on failure, never raises)
    get_by_id(id)         -> record | None   (None on failure)
    create(payload)       -> record          (CreateError)
    update(id, payload)   -> record          (NotFoundError if id unknown)
    delete(id)            -> bool            (memory: NotFoundError, remote: False)
"""
import asyncio
import copy
import itertools
import logging
from typing import Any, Dict, List, Optional

import requests

from .schema import (
    Task,
    Category,
    utc_now_iso,
    task_payload_to_record,
    category_payload_to_record,
)

logger = logging.getLogger(__name__)

TASK_FIELDS = [
    "Name", "Tags", "Owner", "CreatedOn", "CreatedBy", "ModifiedOn", "ModifiedBy",
    "title", "description", "due_date", "priority", "category", "completed", "created_at",
]
CATEGORY_FIELDS = ["Name", "Tags", "Owner", "CreatedOn", "CreatedBy", "ModifiedOn", "ModifiedBy"]
PAGE_SIZE = 100


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Exceptions
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class DataServiceError(Exception):
    """Base class for data service failures."""
    pass


class CreateError(DataServiceError):
    """Raised when the backend did not create the record."""
    pass


class NotFoundError(DataServiceError):
    """Raised when the target record does not exist (or vanished)."""
    pass


class TransportError(DataServiceError):
    """Raised when the remote record API could not be reached or answered badly."""
    pass


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# In-memory backend
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class _MemoryService:
    """Keeps client-form records in a list. Ids come from a counter and are never reused."""

    kind = "record"

    def __init__(self, seed: Optional[List[Dict[str, Any]]] = None, latency_ms: int = 0):
        seed = [dict(r) for r in (seed or [])]
        # ids are matched by string form at the API, so "7" reserves 7 too
        taken = [str(r["id"]) for r in seed if r.get("id") is not None]
        start = max((int(t) for t in taken if t.isdigit()), default=0) + 1
        self._ids = itertools.count(start)
        self._records: List[Dict[str, Any]] = []
        for record in seed:
            if record.get("id") is None:
                record["id"] = next(self._ids)
            self._records.append(self._build(record).to_dict())
        self.latency = latency_ms / 1000.0

    async def _pause(self):
        await asyncio.sleep(self.latency)

    def _find(self, record_id: Any) -> Optional[int]:
        for i, record in enumerate(self._records):
            if record.get("id") == record_id:
                return i
        return None

    def _build(self, record: Dict[str, Any]):
        raise NotImplementedError

    def _new_record(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def get_all(self) -> list:
        await self._pause()
        try:
            return [self._build(r) for r in self._records]
        except Exception as e:
            logger.error(f"Error fetching {self.kind}s: {e}")
            return []

    async def get_by_id(self, record_id: Any):
        await self._pause()
        i = self._find(record_id)
        if i is None:
            return None
        try:
            return self._build(self._records[i])
        except Exception as e:
            logger.error(f"Error fetching {self.kind} with ID {record_id}: {e}")
            return None

    async def create(self, payload: Dict[str, Any]):
        await self._pause()
        try:
            record = self._new_record(payload)
            record["id"] = next(self._ids)
            built = self._build(record)
        except Exception as e:
            raise CreateError(f"Failed to create {self.kind}: {e}") from e
        self._records.append(record)
        return built

    async def update(self, record_id: Any, payload: Dict[str, Any]):
        await self._pause()
        i = self._find(record_id)
        if i is None:
            raise NotFoundError(f"{self.kind} {record_id} not found")
        record = dict(self._records[i])
        record.update(self._updatable(payload))
        built = self._build(record)
        self._records[i] = built.to_dict()
        return built

    async def delete(self, record_id: Any) -> bool:
        await self._pause()
        i = self._find(record_id)
        if i is None:
            raise NotFoundError(f"{self.kind} {record_id} not found")
        del self._records[i]
        return True

    def _updatable(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


class MemoryTaskService(_MemoryService):
    kind = "task"

    def _build(self, record):
        return Task.from_dict(record)

    def _new_record(self, payload):
        data = Task.from_dict(payload).to_dict()
        data["createdAt"] = utc_now_iso()
        return data

    def _updatable(self, payload):
        # id and createdAt are fixed at creation
        keys = ("title", "description", "dueDate", "priority", "category", "completed", "tags")
        return {k: copy.deepcopy(payload[k]) for k in keys if k in payload}


class MemoryCategoryService(_MemoryService):
    kind = "category"

    def _build(self, record):
        return Category.from_dict(record)

    def _new_record(self, payload):
        data = Category.from_dict(payload).to_dict()
        data["createdOn"] = utc_now_iso()
        return data

    def _updatable(self, payload):
        return {k: copy.deepcopy(payload[k]) for k in ("name", "tags") if k in payload}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Remote backend
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class RecordClient:
    """
    Thin blocking client for the remote record API.

    Envelopes:
        query / get           -> {"data": ...}
        create/update/delete  -> {"success": bool, "results": [{"success": bool, "data": {...}}]}
    """

    def __init__(self, base_url: str, project_id: str = "", public_key: str = "", timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "X-Project-Id": project_id,
            "X-Public-Key": public_key,
        })

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}/{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        if r.status_code == 404:
            raise NotFoundError(f"{method} {url}: not found")
        if not r.ok:
            raise TransportError(f"{method} {url} returned HTTP {r.status_code}")
        try:
            return r.json() or {}
        except ValueError as e:
            raise TransportError(f"{method} {url} returned invalid JSON") from e

    def fetch_records(self, table: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", f"{table}/query", json=params)

    def get_record_by_id(self, table: str, record_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("GET", f"{table}/{record_id}", params={"fields": ",".join(params.get("fields", []))})

    def create_record(self, table: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", table, json=params)

    def update_record(self, table: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", table, json=params)

    def delete_record(self, table: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("DELETE", table, json=params)


def _successful(response: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Results marked successful in a write envelope."""
    if not response or not response.get("success") or not response.get("results"):
        return []
    return [r for r in response["results"] if r.get("success")]


class _RemoteService:
    """Maps the contract onto a RecordClient table. Blocking HTTP runs in a worker thread."""

    kind = "record"
    table = ""
    fields: List[str] = []

    def __init__(self, client: RecordClient):
        self.client = client

    def _build(self, record: Dict[str, Any]):
        raise NotImplementedError

    def _to_record(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def get_all(self) -> list:
        params = {
            "fields": self.fields,
            "orderBy": [{"fieldName": "CreatedOn", "SortType": "DESC"}],
            "pagingInfo": {"limit": PAGE_SIZE, "offset": 0},
        }
        try:
            response = await asyncio.to_thread(self.client.fetch_records, self.table, params)
            rows = response.get("data") or []
            return [self._build(row) for row in rows]
        except Exception as e:
            logger.error(f"Error fetching {self.kind}s: {e}")
            return []

    async def get_by_id(self, record_id: Any):
        try:
            response = await asyncio.to_thread(
                self.client.get_record_by_id, self.table, record_id, {"fields": self.fields}
            )
            row = response.get("data")
            return self._build(row) if row else None
        except Exception as e:
            logger.error(f"Error fetching {self.kind} with ID {record_id}: {e}")
            return None

    async def create(self, payload: Dict[str, Any]):
        params = {"records": [self._to_record(payload)]}
        try:
            response = await asyncio.to_thread(self.client.create_record, self.table, params)
        except DataServiceError as e:
            raise CreateError(f"Failed to create {self.kind}: {e}") from e
        created = _successful(response)
        if not created:
            raise CreateError(f"Failed to create {self.kind}")
        return self._build(created[0].get("data") or {})

    async def update(self, record_id: Any, payload: Dict[str, Any]):
        record = self._to_record(payload)
        record["Id"] = record_id
        response = await asyncio.to_thread(self.client.update_record, self.table, {"records": [record]})
        updated = _successful(response)
        if not updated:
            raise NotFoundError(f"Failed to update {self.kind} {record_id}")
        return self._build(updated[0].get("data") or {})

    async def delete(self, record_id: Any) -> bool:
        try:
            response = await asyncio.to_thread(self.client.delete_record, self.table, {"RecordIds": [record_id]})
        except NotFoundError:
            return False
        return len(_successful(response)) > 0


class RemoteTaskService(_RemoteService):
    kind = "task"
    table = "task"
    fields = TASK_FIELDS

    def _build(self, record):
        return Task.from_record(record)

    def _to_record(self, payload):
        record = task_payload_to_record(payload)
        if "createdAt" in payload:
            record["created_at"] = payload["createdAt"]
        return record

    async def create(self, payload):
        payload = dict(payload, createdAt=utc_now_iso())
        return await super().create(payload)

    async def update(self, record_id, payload):
        # created_at is not updateable
        payload = {k: v for k, v in payload.items() if k != "createdAt"}
        return await super().update(record_id, payload)


class RemoteCategoryService(_RemoteService):
    kind = "category"
    table = "category"
    fields = CATEGORY_FIELDS

    def _build(self, record):
        return Category.from_record(record)

    def _to_record(self, payload):
        return category_payload_to_record(payload)


def build_services(config):
    """Return (task_service, category_service) for the configured backend."""
    if config.backend == "remote":
        client = RecordClient(
            config.api_url,
            project_id=config.project_id,
            public_key=config.public_key,
            timeout=config.request_timeout,
        )
        return RemoteTaskService(client), RemoteCategoryService(client)
    seed = config.load_seed()
    return (
        MemoryTaskService(seed.get("tasks"), latency_ms=config.latency_ms),
        MemoryCategoryService(seed.get("categories"), latency_ms=config.latency_ms),
    )

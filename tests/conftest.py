from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import unquote

import pytest

from indexkit.client.options import RequestOptions
from indexkit.config import SearchConfig
from indexkit.exceptions import RemoteOperationError

# ---------- Helpers ----------


@dataclass
class Call:
    kind: str
    method: str
    path: str
    body: Any = None
    options: Optional[RequestOptions] = None
    defaults: Optional[Mapping[str, Any]] = None

    @property
    def query(self) -> Dict[str, Any]:
        return dict(self.options.query) if self.options else {}


@dataclass
class _Index:
    objects: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)
    synonyms: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    rules: Dict[str, Dict[str, Any]] = field(default_factory=dict)


class InMemoryService:
    """Dispatcher double that behaves like a tiny search service.

    Writes are applied immediately and every task reports "published".
    `fail_when` can make a specific write raise RemoteOperationError.
    """

    def __init__(self) -> None:
        self.indexes: Dict[str, _Index] = {}
        self.calls: List[Call] = []
        self.fail_when: Optional[Callable[[Call], bool]] = None
        self.before_write: Optional[Callable[[Call], None]] = None
        self._next_task = 100

    # --- test helpers ---

    def seed(self, name: str, objects: List[Dict[str, Any]], **resources: Any) -> None:
        idx = self.indexes.setdefault(name, _Index())
        for obj in objects:
            idx.objects[str(obj["objectID"])] = dict(obj)
        idx.settings.update(resources.get("settings") or {})
        for s in resources.get("synonyms") or []:
            idx.synonyms[s["objectID"]] = dict(s)
        for r in resources.get("rules") or []:
            idx.rules[r["objectID"]] = dict(r)

    def object_ids(self, name: str) -> List[str]:
        return sorted(self.indexes[name].objects)

    @property
    def writes(self) -> List[Call]:
        return [c for c in self.calls if c.kind == "write"]

    # --- dispatcher protocol ---

    @staticmethod
    def _split(path: str) -> List[str]:
        parts = [unquote(p) for p in path.split("/") if p]
        assert parts[:2] == ["1", "indexes"], path
        return parts[2:]

    async def read(
        self, method: str, path: str, options: Optional[RequestOptions] = None
    ) -> Dict[str, Any]:
        self.calls.append(Call("read", method, path, options=options))
        parts = self._split(path)
        name, rest = parts[0], parts[1:]
        if rest[:1] == ["task"]:
            return {"status": "published"}
        idx = self.indexes.get(name)
        if idx is None:
            raise RemoteOperationError("Index does not exist", status_code=404)
        if rest == ["browse"]:
            return {"hits": list(idx.objects.values())}
        if rest == ["settings"]:
            return dict(idx.settings)
        if len(rest) == 1 and method == "GET":
            if rest[0] not in idx.objects:
                raise RemoteOperationError("ObjectID does not exist", status_code=404)
            return dict(idx.objects[rest[0]])
        raise AssertionError(f"unexpected read {method} {path}")

    async def write(
        self,
        method: str,
        path: str,
        body: Any = None,
        options: Optional[RequestOptions] = None,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        call = Call("write", method, path, body, options, defaults)
        self.calls.append(call)
        if self.before_write:
            self.before_write(call)
        if self.fail_when and self.fail_when(call):
            raise RemoteOperationError("service unavailable", status_code=503)
        self._apply(call)
        self._next_task += 1
        return {"taskID": self._next_task}

    def _apply(self, call: Call) -> None:
        parts = self._split(call.path)
        name, rest = parts[0], parts[1:]
        if rest == ["operation"]:
            src = self.indexes.get(name, _Index())
            dest = call.body["destination"]
            if call.body["operation"] == "move":
                self.indexes[dest] = self.indexes.pop(name)
            else:
                target = self.indexes.setdefault(dest, _Index())
                scope = call.body.get("scope") or ["settings", "synonyms", "rules", "objects"]
                for kind in scope:
                    setattr(target, kind, dict(getattr(src, kind)))
            return
        idx = self.indexes.setdefault(name, _Index())
        if rest == ["batch"]:
            for entry in call.body["requests"]:
                oid = str(entry["body"]["objectID"])
                if entry["action"] == "deleteObject":
                    idx.objects.pop(oid, None)
                elif entry["action"] == "addObject":
                    idx.objects[oid] = dict(entry["body"])
                else:
                    idx.objects.setdefault(oid, {}).update(entry["body"])
        elif rest == ["settings"]:
            idx.settings = dict(call.body)
        elif rest in (["synonyms", "batch"], ["rules", "batch"]):
            store = idx.synonyms if rest[0] == "synonyms" else idx.rules
            if call.query.get("replaceExistingSynonyms") or call.query.get("clearExistingRules"):
                store.clear()
            for item in call.body:
                store[item["objectID"]] = dict(item)
        elif rest == ["clear"]:
            idx.objects.clear()


@pytest.fixture
def service() -> InMemoryService:
    return InMemoryService()


@pytest.fixture
def config() -> SearchConfig:
    return SearchConfig(batch_size=10, wait_task_time_before_retry=0.0)


def make_records(n: int, prefix: str = "r") -> List[Dict[str, Any]]:
    return [{"objectID": f"{prefix}{i}", "n": i} for i in range(n)]

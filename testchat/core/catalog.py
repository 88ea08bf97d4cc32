"""Test method descriptors and catalog snapshots."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, Sequence, Tuple


class CatalogError(ValueError):
    """Raised when a catalog snapshot violates its invariants."""


def _normalise_keywords(keywords: Iterable[str]) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for keyword in keywords or ():
        token = str(keyword).strip().lower()
        if token and token not in seen:
            seen[token] = None
    return tuple(seen)


@dataclass(frozen=True)
class MethodDescriptor:
    id: str
    display_name: str
    description: str
    class_name: str
    method_name: str
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    file_path: str = ""
    package_name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "keywords", _normalise_keywords(self.keywords))
        object.__setattr__(self, "description", self.description or "")

    @property
    def reference(self) -> str:
        return f"{self.class_name}#{self.method_name}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MethodDescriptor":
        """Build a descriptor from API / storage payloads (camelCase or snake_case keys)."""

        def _pick(*keys: str, default: Any = "") -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        class_name = str(_pick("className", "class_name"))
        method_name = str(_pick("methodName", "method_name"))
        return cls(
            id=str(_pick("id", default=f"{class_name}_{method_name}")),
            display_name=str(_pick("displayName", "display_name", "name", default=method_name)),
            description=str(_pick("description")),
            class_name=class_name,
            method_name=method_name,
            keywords=tuple(_pick("keywords", default=())),
            file_path=str(_pick("filePath", "file_path")),
            package_name=str(_pick("packageName", "package_name")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.display_name,
            "description": self.description,
            "className": self.class_name,
            "methodName": self.method_name,
            "keywords": list(self.keywords),
            "filePath": self.file_path,
            "packageName": self.package_name,
        }


class MethodCatalog:
    """Immutable, ordered snapshot of method descriptors.

    Iteration order is the order the descriptors were supplied in; the matcher
    relies on it to break score ties.
    """

    def __init__(self, methods: Iterable[MethodDescriptor] = ()) -> None:
        items = tuple(methods)
        ids: Dict[str, None] = {}
        for method in items:
            if method.id in ids:
                raise CatalogError(f"Duplicate method id in catalog: {method.id}")
            ids[method.id] = None
        self._methods: Tuple[MethodDescriptor, ...] = items

    @classmethod
    def from_dicts(cls, payload: Iterable[Dict[str, Any]]) -> "MethodCatalog":
        return cls(MethodDescriptor.from_dict(item) for item in payload)

    def __iter__(self) -> Iterator[MethodDescriptor]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    def __bool__(self) -> bool:
        return bool(self._methods)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MethodCatalog):
            return NotImplemented
        return self._methods == other._methods

    @property
    def methods(self) -> Tuple[MethodDescriptor, ...]:
        return self._methods

    def get(self, method_id: str) -> Optional[MethodDescriptor]:
        for method in self._methods:
            if method.id == method_id:
                return method
        return None

    def find(self, class_name: str, method_name: str) -> Optional[MethodDescriptor]:
        for method in self._methods:
            if method.class_name == class_name and method.method_name == method_name:
                return method
        return None

    def resolve(self, reference: str) -> Optional[MethodDescriptor]:
        """Look up a ``Class#method`` reference."""
        class_name, sep, method_name = (reference or "").partition("#")
        if not sep:
            return None
        return self.find(class_name, method_name)

    def names(self) -> List[str]:
        return [method.display_name for method in self._methods]

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [method.to_dict() for method in self._methods]


class MethodCatalogProvider(Protocol):
    def list(self) -> Sequence[MethodDescriptor]:
        ...


class StaticCatalogProvider:
    """Provider over a fixed list, e.g. descriptors restored from settings."""

    def __init__(self, methods: Iterable[MethodDescriptor]) -> None:
        self._methods = tuple(methods)

    def list(self) -> Sequence[MethodDescriptor]:
        return self._methods


class CatalogStore:
    """Holds the current catalog; replaced wholesale, read as snapshots."""

    def __init__(self, catalog: Optional[MethodCatalog] = None) -> None:
        self._lock = threading.RLock()
        self._catalog = catalog or MethodCatalog()

    def snapshot(self) -> MethodCatalog:
        with self._lock:
            return self._catalog

    def replace(self, methods: Iterable[MethodDescriptor]) -> MethodCatalog:
        catalog = methods if isinstance(methods, MethodCatalog) else MethodCatalog(methods)
        with self._lock:
            self._catalog = catalog
        return catalog

    def load(self, provider: MethodCatalogProvider) -> MethodCatalog:
        return self.replace(provider.list())

    def clear(self) -> None:
        with self._lock:
            self._catalog = MethodCatalog()


SAMPLE_METHODS: Tuple[MethodDescriptor, ...] = (
    MethodDescriptor(
        id="1",
        display_name="Create Customer",
        description="Creates a new customer in the system",
        class_name="CustomerTests",
        method_name="createCustomer",
        keywords=("create", "customer", "new customer", "add customer", "customer creation"),
    ),
    MethodDescriptor(
        id="2",
        display_name="Edit Customer",
        description="Updates existing customer information",
        class_name="CustomerTests",
        method_name="editCustomer",
        keywords=("edit", "customer", "update customer", "modify customer", "customer edit"),
    ),
    MethodDescriptor(
        id="3",
        display_name="Delete Customer",
        description="Removes a customer from the system",
        class_name="CustomerTests",
        method_name="deleteCustomer",
        keywords=("delete", "customer", "remove customer", "customer deletion"),
    ),
    MethodDescriptor(
        id="4",
        display_name="Create Job",
        description="Creates a new job for a customer",
        class_name="JobTests",
        method_name="createJob",
        keywords=("create", "job", "new job", "add job", "job creation"),
    ),
    MethodDescriptor(
        id="5",
        display_name="Complete Job",
        description="Marks a job as completed",
        class_name="JobTests",
        method_name="completeJob",
        keywords=("complete", "job", "finish job", "job completion"),
    ),
    MethodDescriptor(
        id="6",
        display_name="Create Invoice",
        description="Creates an invoice for a completed job",
        class_name="InvoiceTests",
        method_name="createInvoice",
        keywords=("create", "invoice", "raise invoice", "generate invoice", "bill"),
    ),
)

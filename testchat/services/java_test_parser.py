"""Extract TestNG ``@Test`` methods from Java sources into method descriptors."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple

from ..core.catalog import MethodDescriptor
from ..core.matcher import split_camel_case

logger = logging.getLogger(__name__)

_PACKAGE_RE = re.compile(r"package\s+([a-zA-Z_$][\w$]*(?:\.[a-zA-Z_$][\w$]*)*)\s*;")
_CLASS_RE = re.compile(r"(?:public\s+)?class\s+([A-Za-z_$][\w$]*)")
_TEST_METHOD_RE = re.compile(
    r"@Test(?:\s*\([^)]*\))?\s*"
    r"(?://.*\n)*\s*"
    r"(?:/\*[\s\S]*?\*/\s*)*\s*"
    r"(?:public|private|protected)?\s+void\s+([a-zA-Z_$][\w$]*)\s*\([^)]*\)\s*"
    r"(?:throws\s+[^{]*?)?\s*\{"
)
_COMMENT_PREFIX_RE = re.compile(r"^(//|\*|/\*\*)\s*")

STOP_WORDS = frozenset({
    "test", "the", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "should", "will", "can", "this", "that",
})

DOMAIN_KEYWORDS: Dict[str, Sequence[str]] = {
    "customer": ("customer", "client", "user", "account"),
    "job": ("job", "task", "work", "order", "appointment"),
    "invoice": ("invoice", "bill", "payment", "charge"),
    "create": ("create", "add", "new", "insert"),
    "edit": ("edit", "update", "modify", "change"),
    "delete": ("delete", "remove", "cancel"),
    "complete": ("complete", "finish", "done", "close"),
    "schedule": ("schedule", "book", "plan"),
    "quote": ("quote", "estimate", "proposal"),
}


class JavaParseError(RuntimeError):
    """Raised when a Java source file cannot be read."""


def extract_package_name(content: str) -> str:
    match = _PACKAGE_RE.search(content)
    return match.group(1) if match else ""


def extract_class_name(content: str, file_name: str) -> str:
    match = _CLASS_RE.search(content)
    if match:
        return match.group(1)
    return file_name[:-5] if file_name.endswith(".java") else file_name


def format_method_name(method_name: str) -> str:
    """``createCustomer`` -> ``Create Customer``."""
    spaced = re.sub(r"([A-Z])", r" \1", method_name).strip()
    return spaced[:1].upper() + spaced[1:]


def _leading_comment(content: str, method_start: int) -> str:
    description = ""
    for raw in reversed(content[:method_start].split("\n")):
        line = raw.strip()
        if line.startswith(("//", "*", "/**")):
            text = _COMMENT_PREFIX_RE.sub("", line.removesuffix("*/")).strip()
            if text:
                description = text + " " + description
        elif line == "" or line.startswith("@"):
            continue
        else:
            break
    return description.strip()


def business_keywords(method_name: str, class_name: str) -> List[str]:
    combined = f"{method_name} {class_name}".lower()
    keywords: List[str] = []
    for key, variants in DOMAIN_KEYWORDS.items():
        present = [variant for variant in variants if variant in combined]
        if present:
            keywords.append(key)
            keywords.extend(present)
    return keywords


def generate_keywords(method_name: str, description: str, class_name: str) -> List[str]:
    keywords = [method_name.lower()]
    keywords.extend(split_camel_case(method_name))
    if description:
        words = re.sub(r"[^\w\s]", " ", description.lower()).split()
        keywords.extend(word for word in words if len(word) > 2)
    class_stem = re.sub(r"Tests?$", "", class_name)
    keywords.extend(split_camel_case(class_stem))
    keywords.extend(business_keywords(method_name, class_name))

    unique = dict.fromkeys(keywords)
    return [keyword for keyword in unique if keyword not in STOP_WORDS and len(keyword) > 1]


def parse_java_source(content: str, file_name: str, file_path: str = "") -> List[MethodDescriptor]:
    package_name = extract_package_name(content)
    class_name = extract_class_name(content, file_name)
    methods: List[MethodDescriptor] = []
    for match in _TEST_METHOD_RE.finditer(content):
        method_name = match.group(1)
        description = _leading_comment(content, match.start())
        methods.append(
            MethodDescriptor(
                id=f"{class_name}_{method_name}",
                display_name=format_method_name(method_name),
                description=description or f"Test method: {method_name}",
                class_name=class_name,
                method_name=method_name,
                keywords=tuple(generate_keywords(method_name, description, class_name)),
                file_path=file_path or file_name,
                package_name=package_name,
            )
        )
    if methods:
        logger.info("[JavaParser] Extracted %d test methods from %s: %s", len(methods), file_name, [m.method_name for m in methods])
    return methods


def _dedupe(methods: Iterable[MethodDescriptor]) -> List[MethodDescriptor]:
    seen: Dict[str, MethodDescriptor] = {}
    for method in methods:
        if method.id in seen:
            logger.warning("[JavaParser] Skipping duplicate test method %s", method.id)
            continue
        seen[method.id] = method
    return list(seen.values())


def read_java_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise JavaParseError(f"Unable to read {path}: {exc}") from exc


def parse_java_files(paths: Iterable[Path], root: Path | None = None) -> List[MethodDescriptor]:
    all_methods: List[MethodDescriptor] = []
    for path in paths:
        path = Path(path)
        if path.suffix != ".java":
            continue
        try:
            content = read_java_file(path)
        except JavaParseError as exc:
            logger.error("[JavaParser] %s", exc)
            continue
        rel = path.relative_to(root).as_posix() if root else path.name
        all_methods.extend(parse_java_source(content, path.name, rel))
    methods = _dedupe(all_methods)
    logger.info("[JavaParser] Total extracted test methods: %d", len(methods))
    return methods


def parse_sources(sources: Iterable[Tuple[str, str]]) -> List[MethodDescriptor]:
    """Parse ``(file_name, content)`` pairs, e.g. from an upload; non-Java names are ignored."""
    all_methods: List[MethodDescriptor] = []
    for file_name, content in sources:
        if not file_name.endswith(".java"):
            continue
        all_methods.extend(parse_java_source(content, Path(file_name).name, file_name))
    return _dedupe(all_methods)


def scan_directory(root: Path) -> List[MethodDescriptor]:
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Test root not found: {root}")
    return parse_java_files(sorted(root.rglob("*.java")), root=root)


class JavaSourceCatalogProvider:
    """Method catalog provider that scans a TestNG project on disk."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def list(self) -> List[MethodDescriptor]:
        return scan_directory(self.root)

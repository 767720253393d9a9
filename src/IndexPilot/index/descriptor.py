"""Declarative description of one logical index."""

from __future__ import annotations

import importlib
from collections.abc import Callable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

from IndexPilot.core.errors import ClientResolutionError

if TYPE_CHECKING:
    from IndexPilot.client.base import AdminClient

Backfill = Callable[[str, "AdminClient"], Any]


@dataclass(frozen=True, slots=True)
class IndexDescriptor:
    """Read-only schema description for a logical index.

    The logical ``name`` is the public alias; physical generations are named
    ``{name}_{n}`` (see ``physical_name``).

    Attributes:
        name: Logical index name, used as the stable alias.
        settings: Index settings (shards, analysis, ...).
        properties: Field mappings keyed by field name.
        doc_type: Document-type label for engines that still use mapping
            types; None emits typeless mappings.
        backfill: Optional procedure ``(physical_index, client)`` that
            populates a freshly created physical index.
        pool: Connection pool used to reach the engine.
    """

    name: str
    settings: Mapping[str, Any] = field(default_factory=dict)
    properties: Mapping[str, Any] = field(default_factory=dict)
    doc_type: str | None = None
    backfill: Backfill | None = None
    pool: str = "default"

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Index descriptor name must be a non-empty string")
        for attr in ("settings", "properties"):
            value = getattr(self, attr)
            if not isinstance(value, Mapping):
                raise TypeError(
                    f"Property {attr} of index {self.name} must be a mapping, {type(value).__name__} given"
                )
            object.__setattr__(self, attr, MappingProxyType(dict(value)))
        if self.backfill is not None and not callable(self.backfill):
            raise TypeError(f"Backfill of index {self.name} must be callable")

    def mapping_body(self) -> dict[str, Any]:
        """Return the body for a put-mapping call."""
        return {"properties": _plain(self.properties)}

    def create_mappings(self) -> dict[str, Any]:
        """Return the ``mappings`` section for index creation."""
        if self.doc_type:
            return {self.doc_type: self.mapping_body()}
        return self.mapping_body()

    def settings_body(self) -> dict[str, Any]:
        return _plain(self.settings)


def physical_name(name: str, generation: int) -> str:
    """Return the physical index name of one generation: ``orders_3``."""
    return f"{name}_{generation}"


def load_descriptor(path: str) -> IndexDescriptor:
    """Resolve ``"package.module:ATTRIBUTE"`` to an index descriptor.

    The attribute may be the descriptor itself or a zero-argument callable
    that returns one.

    Raises:
        ClientResolutionError: If the module or attribute cannot be resolved or
            does not produce an ``IndexDescriptor``.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ClientResolutionError(f"Index must be given as module:attribute, got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ClientResolutionError(f"{path} not exists: {e}") from e

    target: Any = module
    for part in attr.split("."):
        if not hasattr(target, part):
            raise ClientResolutionError(f"{path} not exists!")
        target = getattr(target, part)

    if not isinstance(target, IndexDescriptor) and callable(target):
        target = target()
    if not isinstance(target, IndexDescriptor):
        raise ClientResolutionError(f"{path} must be an instance of {IndexDescriptor.__name__}")
    return target


def _plain(value: Any) -> Any:
    """Convert read-only mappings back into plain JSON-ready containers."""
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value

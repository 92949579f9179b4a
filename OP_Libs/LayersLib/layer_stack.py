"""
Ordered layer collection.

Sequence position is z-order: index 0 is drawn first (bottom), the last
layer is drawn on top. Operations that reference a missing id are no-ops
and report it through their return value rather than raising.
"""

import logging
from dataclasses import fields, replace
from typing import Any, Dict, Iterator, List, Optional

from OP_Libs.constants import DUPLICATE_OFFSET, LAYER_KIND_STICKER, LAYER_KIND_TEXT
from OP_Libs.LayersLib.layer_models import (
    LAYER_CLASSES,
    Layer,
    layer_from_dict,
    new_layer_id,
)

logger = logging.getLogger(__name__)

_PROTECTED_FIELDS = {"id", "kind"}


class LayerStack:
    """Text and sticker layers in z-order, plus the active selection."""

    def __init__(self, layers: Optional[List[Layer]] = None):
        self._layers: List[Layer] = []
        self._active_id: Optional[str] = None
        for layer in layers or []:
            self._append(layer)

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(list(self._layers))

    def __contains__(self, layer_id: object) -> bool:
        return self.index_of(layer_id) is not None

    @property
    def layers(self) -> List[Layer]:
        """Snapshot of the layers, bottom first."""
        return list(self._layers)

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    @property
    def active(self) -> Optional[Layer]:
        return self.get(self._active_id) if self._active_id else None

    def index_of(self, layer_id: object) -> Optional[int]:
        for index, layer in enumerate(self._layers):
            if layer.id == layer_id:
                return index
        return None

    def get(self, layer_id: Optional[str]) -> Optional[Layer]:
        index = self.index_of(layer_id)
        return None if index is None else self._layers[index]

    def _append(self, layer: Layer) -> None:
        if self.index_of(layer.id) is not None:
            raise ValueError(f"Duplicate layer id: {layer.id}")
        self._layers.append(layer)

    def create(self, kind: str, **overrides: Any) -> Layer:
        """
        Create a layer on top of the stack and make it active.

        Overrides are merged over the kind's defaults. The id is always
        generated here.

        Args:
            kind: 'text' or 'sticker'
            **overrides: Field values (snake_case)

        Returns:
            The new layer

        Raises:
            ValueError: If kind is unknown, or a sticker is created without src
        """
        kind = str(kind).lower()
        if kind not in LAYER_CLASSES:
            raise ValueError(
                f"Unknown layer kind: {kind!r}. "
                f"Valid kinds: {', '.join(LAYER_CLASSES)}"
            )
        if "id" in overrides:
            logger.warning(f"Ignoring supplied id {overrides['id']!r}; layer ids are generated")
        if kind == LAYER_KIND_STICKER and not overrides.get("src"):
            raise ValueError("Sticker layers require a src")

        layer_cls = LAYER_CLASSES[kind]
        known = {f.name for f in fields(layer_cls) if f.init} - _PROTECTED_FIELDS
        unknown = sorted(k for k in overrides if k not in known and k not in _PROTECTED_FIELDS)
        if unknown:
            logger.warning(f"Ignoring unknown {kind} layer fields: {', '.join(unknown)}")

        values = {k: v for k, v in overrides.items() if k in known}
        layer = layer_cls(id=new_layer_id(kind), **values)
        self._append(layer)
        self._active_id = layer.id
        logger.debug(f"Created {kind} layer {layer.id}")
        return layer

    def update(self, layer_id: str, **changes: Any) -> Optional[Layer]:
        """
        Merge changes into a layer.

        The id and kind cannot be changed; unknown fields are ignored.

        Returns:
            The updated layer, or None if layer_id is not in the stack

        Raises:
            ValueError: If a sticker's src is cleared
        """
        index = self.index_of(layer_id)
        if index is None:
            logger.debug(f"update: no layer {layer_id}")
            return None

        layer = self._layers[index]
        known = {f.name for f in fields(layer) if f.init} - _PROTECTED_FIELDS
        ignored = sorted(k for k in changes if k not in known)
        if ignored:
            logger.warning(f"Ignoring fields {', '.join(ignored)} for layer {layer_id}")

        updated = replace(layer, **{k: v for k, v in changes.items() if k in known})
        self._layers[index] = updated
        return updated

    def delete(self, layer_id: str) -> bool:
        """Remove a layer; clears the active selection if it pointed there."""
        index = self.index_of(layer_id)
        if index is None:
            logger.debug(f"delete: no layer {layer_id}")
            return False

        del self._layers[index]
        if self._active_id == layer_id:
            self._active_id = None
        logger.debug(f"Deleted layer {layer_id}")
        return True

    def duplicate(self, layer_id: str) -> Optional[Layer]:
        """
        Clone a layer with a new id, offset by +20/+20, on top of the stack.

        The clone becomes the active layer.

        Returns:
            The clone, or None if layer_id is not in the stack
        """
        original = self.get(layer_id)
        if original is None:
            logger.debug(f"duplicate: no layer {layer_id}")
            return None

        clone = replace(
            original,
            id=new_layer_id(original.kind),
            x=original.x + DUPLICATE_OFFSET,
            y=original.y + DUPLICATE_OFFSET,
        )
        self._append(clone)
        self._active_id = clone.id
        logger.debug(f"Duplicated layer {layer_id} as {clone.id}")
        return clone

    def select(self, layer_id: Optional[str]) -> bool:
        """Make a layer active (None clears the selection)."""
        if layer_id is None:
            self._active_id = None
            return True
        if self.index_of(layer_id) is None:
            return False
        self._active_id = layer_id
        return True

    def move(self, from_index: int, to_index: int) -> bool:
        """
        Move the layer at from_index to to_index (z-order change).

        Returns:
            False if from_index is out of range
        """
        count = len(self._layers)
        if not 0 <= from_index < count:
            return False
        to_index = max(0, min(count - 1, to_index))
        layer = self._layers.pop(from_index)
        self._layers.insert(to_index, layer)
        return True

    def clear(self) -> None:
        self._layers.clear()
        self._active_id = None

    def text_layers(self) -> List[Layer]:
        return [layer for layer in self._layers if layer.kind == LAYER_KIND_TEXT]

    def sticker_layers(self) -> List[Layer]:
        return [layer for layer in self._layers if layer.kind == LAYER_KIND_STICKER]

    def to_dicts(self) -> List[Dict[str, Any]]:
        """Convert to a list of dictionaries, bottom first."""
        return [layer.to_dict() for layer in self._layers]

    @classmethod
    def from_dicts(cls, data: List[Dict[str, Any]]) -> "LayerStack":
        """Create from a list of layer dictionaries (missing ids are generated)."""
        return cls([layer_from_dict(item) for item in data])

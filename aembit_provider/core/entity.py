"""Common entity envelope and the base model ⇄ DTO transformer.

Every Aembit entity carries the same envelope on the wire::

    {"externalId": "...", "name": "...", "description": "...",
     "isActive": true, "tags": [{"key": "env", "value": "prod"}]}

Resource-specific transformers extend ``EntityTransformer`` and only map
their own body fields.
"""
from __future__ import annotations
import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import ConversionError, ValidationError
from .variants import VariantRegistry

logger = logging.getLogger(__name__)


@dataclass
class EntityRecord:
    """Identity and metadata shared by every resource kind.

    ``id`` is assigned by Aembit on create and never changes afterwards.
    ``is_active`` left as None lets the server pick its default.
    """
    name: str = ""
    id: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    tags: Optional[Dict[str, str]] = None


def tags_to_dto(tags: Optional[Mapping[str, str]]) -> List[Dict[str, str]]:
    """Convert a tag mapping to the wire list, sorted by key for stable payloads."""
    if not tags:
        return []
    return [{"key": key, "value": value} for key, value in sorted(tags.items())]


def tags_from_dto(tags: Optional[List[Mapping[str, Any]]]) -> Optional[Dict[str, str]]:
    """Convert a wire tag list to a mapping (None when there are no tags)."""
    if not tags:
        return None
    return {entry.get("key"): entry.get("value", "") for entry in tags if entry.get("key")}


def envelope_to_dto(record: EntityRecord, external_id: Optional[str] = None) -> Dict[str, Any]:
    """Build the common part of a DTO.

    Args:
        record: Resource model
        external_id: Identifier to embed (update path); omitted on create
    """
    dto: Dict[str, Any] = {"name": record.name}
    if record.description is not None:
        dto["description"] = record.description
    if record.is_active is not None:
        dto["isActive"] = record.is_active
    tags = tags_to_dto(record.tags)
    if tags:
        dto["tags"] = tags
    if external_id is not None:
        dto["externalId"] = external_id
    return dto


def envelope_from_dto(dto: Mapping[str, Any]) -> Dict[str, Any]:
    """Extract EntityRecord keyword arguments from a DTO."""
    return {
        "id": dto.get("externalId") or None,
        "name": dto.get("name") or "",
        "description": dto.get("description"),
        "is_active": dto.get("isActive"),
        "tags": tags_from_dto(dto.get("tags")),
    }


def non_empty(value: Any) -> Any:
    """Map empty strings and empty collections to None."""
    if value in ("", [], {}):
        return None
    return value


class EntityTransformer:
    """Bidirectional transformer between a resource model and its wire DTO.

    Subclasses set ``kind``, ``model`` and optionally ``registry`` and
    implement ``body_to_dto`` / ``body_from_dto`` for their own fields.
    """

    kind: str = "entity"
    model: type = EntityRecord
    registry: Optional[VariantRegistry] = None
    name_required: bool = True

    # ── Validation ────────────────────────────────────────────────────────

    def validate(self, model: EntityRecord) -> None:
        """Check a model before any network call.

        Raises:
            ValidationError: On a missing name or an invalid variant selection
        """
        if not isinstance(model, self.model):
            raise ValidationError(self.kind, f"expected {self.model.__name__}, got {type(model).__name__}")
        if self.name_required and not model.name:
            raise ValidationError(self.kind, "name is required")
        if self.registry is not None:
            self.registry.validate(getattr(model, "config", None))

    # ── Model → DTO ───────────────────────────────────────────────────────

    def model_to_dto(self, model: EntityRecord, external_id: Optional[str] = None) -> Dict[str, Any]:
        """Convert a model to its DTO; ``external_id`` is set on the update path only."""
        dto = envelope_to_dto(model, external_id)
        self.body_to_dto(model, dto)
        return dto

    def body_to_dto(self, model: EntityRecord, dto: Dict[str, Any]) -> None:
        """Write resource-specific fields into ``dto``."""

    # ── DTO → Model ───────────────────────────────────────────────────────

    def dto_to_model(
        self,
        dto: Mapping[str, Any],
        prior: Optional[EntityRecord] = None,
        strict: bool = True,
    ) -> EntityRecord:
        """Convert a DTO to a model.

        Args:
            dto: Wire representation returned by Aembit
            prior: Previously known model; supplies secrets the API never returns
            strict: Raise ConversionError on unparseable variant payloads; when
                False the variant is left unset and a warning is logged

        Raises:
            ConversionError: If strict and a variant payload cannot be parsed
        """
        kwargs = envelope_from_dto(dto)
        try:
            kwargs.update(self.body_from_dto(dto, prior))
        except ConversionError as exc:
            if strict:
                raise
            logger.warning("[%s] Leaving variant unset: %s", self.kind, exc)
            kwargs.update(self.body_from_dto(dto, prior, tolerate=True))
        return self.model(**kwargs)

    def body_from_dto(
        self,
        dto: Mapping[str, Any],
        prior: Optional[EntityRecord],
        tolerate: bool = False,
    ) -> Dict[str, Any]:
        """Return resource-specific model keyword arguments read from ``dto``."""
        return {}

    # ── Host state ────────────────────────────────────────────────────────

    def to_state(self, model: EntityRecord) -> Dict[str, Any]:
        """Render a model as the host's schema-shaped state mapping."""
        state = {f.name: getattr(model, f.name) for f in fields(model) if f.name != "config"}
        state = {key: _plain(value) for key, value in state.items()}
        if self.registry is not None:
            state.update(self.registry.to_blocks(getattr(model, "config", None)))
        return state

    def from_state(self, state: Mapping[str, Any]) -> EntityRecord:
        """Build a model from the host's schema-shaped state mapping.

        Raises:
            ValidationError: On unknown attributes or an invalid variant selection
        """
        data = dict(state)
        kwargs: Dict[str, Any] = {}
        if self.registry is not None:
            kwargs["config"] = self.registry.select(data)
            for block in self.registry.blocks:
                data.pop(block, None)

        known = {f.name for f in fields(self.model) if f.name != "config"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(self.kind, f"unsupported attribute(s): {', '.join(unknown)}")

        data["tags"] = data.get("tags") or None
        kwargs.update(self.coerce_state(data))
        return self.model(**kwargs)

    def coerce_state(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Convert nested state values (dicts, lists) to model types."""
        return data


def _plain(value: Any) -> Any:
    if hasattr(value, "__dataclass_fields__"):
        return asdict(value)
    if isinstance(value, list):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return dict(value)
    return value

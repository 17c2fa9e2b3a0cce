"""Resource lifecycle controller.

Sequences create/read/update/delete for one resource kind against the
Aembit API, converting between models and DTOs on the way in and out.

Architecture:
    Host (plan/state) ──> ResourceController ──> EntityTransformer (model ⇄ DTO)
                                            └──> ResourceService ──> Aembit API

Every call is a single synchronous request sequence. Errors from the API
propagate unchanged and input models are never mutated, so a failed call
leaves the caller's prior state intact.
"""
from __future__ import annotations
import logging
from enum import Enum
from typing import List, Optional

from .aembit.exceptions import AembitNotFoundError
from .aembit.resources import ResourceService
from .entity import EntityRecord, EntityTransformer
from .exceptions import ActiveRecordDeleteError, ResourceNotFoundError

logger = logging.getLogger(__name__)


class DeletePolicy(str, Enum):
    """What to do when deleting an entity that is still active."""
    REJECT_WHILE_ACTIVE = "reject_while_active"
    DISABLE_FIRST = "disable_first"


class ResourceController:
    """Create/read/update/delete one resource kind.

    Usage:
        controller = ResourceController(
            ResourceService(client, "roles"),
            RoleTransformer(),
            delete_policy=DeletePolicy.DISABLE_FIRST,
        )
        role = controller.create(Role(name="Auditors", audit_logs=ReadOnlyPermission(read=True)))
    """

    def __init__(
        self,
        service: ResourceService,
        transformer: EntityTransformer,
        delete_policy: DeletePolicy = DeletePolicy.REJECT_WHILE_ACTIVE,
        strict_conversion: bool = True,
    ):
        """Initialize controller.

        Args:
            service: Remote API collection for this kind
            transformer: Model ⇄ DTO transformer for this kind
            delete_policy: Behaviour of delete on an active entity
            strict_conversion: Raise ConversionError on unparseable payloads
                instead of leaving the variant unset
        """
        self.service = service
        self.transformer = transformer
        self.delete_policy = DeletePolicy(delete_policy)
        self.strict_conversion = strict_conversion

    @property
    def kind(self) -> str:
        return self.transformer.kind

    def _from_dto(self, dto: dict, prior: Optional[EntityRecord]) -> EntityRecord:
        return self.transformer.dto_to_model(dto, prior, strict=self.strict_conversion)

    def create(self, model: EntityRecord) -> EntityRecord:
        """Create the entity and return the model refreshed from the response.

        Raises:
            ValidationError: Before any request, if the model is invalid
            AembitAPIError: If Aembit rejects the request
        """
        self.transformer.validate(model)
        dto = self.transformer.model_to_dto(model)
        created = self.service.create(dto)
        result = self._from_dto(created, model)
        logger.info("[%s] Created '%s' (id=%s)", self.kind, result.name, result.id)
        return result

    def read(self, external_id: str, prior: Optional[EntityRecord] = None) -> Optional[EntityRecord]:
        """Refresh an entity from Aembit.

        Returns:
            The refreshed model, or None when the entity was deleted outside
            of the host (the host should drop it from state)
        """
        try:
            dto = self.service.get(external_id)
        except AembitNotFoundError:
            logger.warning("[%s] %s no longer exists, removing from state", self.kind, external_id)
            return None
        return self._from_dto(dto, prior)

    def update(self, external_id: str, model: EntityRecord) -> EntityRecord:
        """Replace the entity's configuration; the identifier is preserved.

        Raises:
            ValidationError: Before any request, if the model is invalid
            AembitAPIError: If Aembit rejects the request
        """
        self.transformer.validate(model)
        dto = self.transformer.model_to_dto(model, external_id)
        updated = self.service.update(dto)
        result = self._from_dto(updated, model)
        logger.info("[%s] Updated '%s' (id=%s)", self.kind, result.name, result.id)
        return result

    def delete(self, external_id: str, is_active: Optional[bool]) -> None:
        """Delete the entity.

        Active entities are either rejected without any request or disabled
        first, depending on ``delete_policy``.

        Raises:
            ActiveRecordDeleteError: If active and the policy requires manual deactivation
            AembitAPIError: If the disable or delete request fails
        """
        if is_active:
            if self.delete_policy is DeletePolicy.REJECT_WHILE_ACTIVE:
                raise ActiveRecordDeleteError(self.kind, external_id)
            self.service.disable(external_id)
        self.service.delete(external_id)
        logger.info("[%s] Deleted %s", self.kind, external_id)

    def import_state(self, external_id: str) -> EntityRecord:
        """Build a complete model from a bare identifier.

        Raises:
            ResourceNotFoundError: If no entity has this identifier
        """
        model = self.read(external_id)
        if model is None:
            raise ResourceNotFoundError(self.kind, external_id)
        return model

    def list(self) -> List[EntityRecord]:
        """Return every entity of this kind (plural data sources)."""
        return [self._from_dto(dto, None) for dto in self.service.list()]

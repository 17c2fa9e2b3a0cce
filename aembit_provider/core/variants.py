"""Variant registry for "exactly one of" resource configurations.

A resource kind such as a trust provider supports a closed set of mutually
exclusive configuration shapes. In the host schema each shape is a named
block (``azure_metadata``, ``kerberos``, ...); on the wire the active shape
is named by a discriminator string (``AzureMetadataService``, ``Kerberos``).

Models hold the active shape as a single ``config`` attribute, so a model
can never carry two variants at once. ``VariantRegistry.select`` is where a
schema-shaped mapping with several populated blocks is rejected.
"""
from __future__ import annotations
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .exceptions import ValidationError


@dataclass(frozen=True)
class Variant:
    """One named configuration shape of a resource kind.

    Attributes:
        block: Schema block name (e.g. "azure_metadata")
        discriminator: Wire value naming this variant (e.g. "AzureMetadataService")
        config_type: Dataclass holding the variant's fields
        secret_fields: Fields Aembit never returns after create
    """
    block: str
    discriminator: str
    config_type: type
    secret_fields: Tuple[str, ...] = ()

    def build(self, block: Mapping[str, Any]) -> Any:
        """Instantiate the variant dataclass from a schema block."""
        from_block = getattr(self.config_type, "from_block", None)
        if from_block is not None:
            return from_block(block)
        return self.config_type(**block)


class VariantRegistry:
    """Closed set of variants for one resource kind.

    Usage:
        registry = VariantRegistry("trust_provider", [
            Variant("azure_metadata", "AzureMetadataService", AzureMetadata),
            Variant("kerberos", "Kerberos", Kerberos),
        ])
        registry.discriminator_for(AzureMetadata(sku="Standard_B1s"))
        # 'AzureMetadataService'
    """

    def __init__(self, kind: str, variants: Iterable[Variant], required: bool = True):
        self.kind = kind
        self.required = required
        self._variants: Tuple[Variant, ...] = tuple(variants)
        self._by_discriminator = {v.discriminator: v for v in self._variants}
        self._by_block = {v.block: v for v in self._variants}
        self._by_type = {v.config_type: v for v in self._variants}
        if len(self._by_type) != len(self._variants):
            raise ValueError(f"{kind}: each variant needs its own config type")

    @property
    def blocks(self) -> Tuple[str, ...]:
        return tuple(v.block for v in self._variants)

    def variant_for(self, discriminator: Optional[str]) -> Optional[Variant]:
        """Return the variant selected by a wire discriminator, or None if unknown."""
        if not discriminator:
            return None
        return self._by_discriminator.get(discriminator)

    def variant_of(self, config: Any) -> Variant:
        """Return the variant describing a populated config object.

        Raises:
            ValidationError: If the object is not one of this kind's variants
        """
        variant = self._by_type.get(type(config))
        if variant is None:
            raise ValidationError(self.kind, f"{type(config).__name__} is not a {self.kind} variant")
        return variant

    def discriminator_for(self, config: Any) -> str:
        """Return the wire discriminator for a populated config object."""
        return self.variant_of(config).discriminator

    def validate(self, config: Any) -> None:
        """Check that a model's config is one known variant (or absent when optional).

        Raises:
            ValidationError: If the config is missing but required, or of an unknown type
        """
        if config is None:
            if self.required:
                raise ValidationError(
                    self.kind,
                    f"exactly one of {', '.join(self.blocks)} must be configured",
                    self.blocks,
                )
            return
        self.variant_of(config)

    def select(self, state: Mapping[str, Any]) -> Any:
        """Pick the single populated variant block from a schema-shaped mapping.

        A block counts as populated when its value is not None.

        Raises:
            ValidationError: If more than one block is populated, or none while required
        """
        populated = [block for block in self.blocks if state.get(block) is not None]
        if len(populated) > 1:
            raise ValidationError(
                self.kind,
                f"only one of {', '.join(self.blocks)} may be configured, got {', '.join(populated)}",
                tuple(populated),
            )
        if not populated:
            self.validate(None)
            return None

        variant = self._by_block[populated[0]]
        block = state[variant.block]
        if not isinstance(block, Mapping):
            raise ValidationError(self.kind, f"{variant.block} must be an object", (variant.block,))
        try:
            return variant.build(block)
        except TypeError as exc:
            raise ValidationError(self.kind, f"invalid {variant.block} block: {exc}", (variant.block,))

    def to_blocks(self, config: Any) -> Dict[str, Optional[Dict[str, Any]]]:
        """Render a config as schema blocks: the active one populated, the rest None."""
        blocks: Dict[str, Optional[Dict[str, Any]]] = {block: None for block in self.blocks}
        if config is not None:
            blocks[self.variant_of(config).block] = asdict(config)
        return blocks

    def preserve_secrets(self, config: Any, prior: Any) -> Any:
        """Copy secret fields the wire left empty from the prior config of the same variant."""
        if config is None or prior is None or type(config) is not type(prior):
            return config
        carried = {}
        for name in self.variant_of(config).secret_fields:
            if not getattr(config, name, None) and getattr(prior, name, None):
                carried[name] = getattr(prior, name)
        return replace(config, **carried) if carried else config

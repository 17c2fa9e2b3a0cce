"""Provider-level exceptions raised before or after talking to the Aembit API.

Transport failures are reported by ``aembit_provider.core.aembit.exceptions``
and propagate unchanged.
"""


class ProviderError(Exception):
    """Base exception for provider operations."""
    pass


class ConfigurationError(ProviderError):
    """Provider configuration is missing or invalid."""
    pass


class ValidationError(ProviderError):
    """Resource configuration is invalid (e.g. several variant blocks populated).

    Attributes:
        kind: Resource kind that failed validation
        blocks: Variant block names involved, if any
    """

    def __init__(self, kind: str, message: str, blocks: tuple = ()):
        self.kind = kind
        self.blocks = tuple(blocks)
        super().__init__(f"{kind}: {message}")


class ConversionError(ProviderError):
    """A wire payload could not be mapped onto the resource model.

    Attributes:
        kind: Resource kind being converted
        discriminator: Wire discriminator of the payload
    """

    def __init__(self, kind: str, discriminator: str, message: str):
        self.kind = kind
        self.discriminator = discriminator
        super().__init__(f"{kind} [{discriminator}]: {message}")


class ActiveRecordDeleteError(ProviderError):
    """Delete attempted on an active entity whose kind requires manual deactivation."""

    def __init__(self, kind: str, external_id: str):
        self.kind = kind
        self.external_id = external_id
        label = kind.replace("_", " ").title()
        super().__init__(
            f"{label} {external_id} is active and cannot be deleted. "
            f"Please mark the {label.lower()} as inactive first."
        )


class ResourceNotFoundError(ProviderError):
    """Entity does not exist remotely (raised where absence is not a normal outcome)."""

    def __init__(self, kind: str, external_id: str):
        self.kind = kind
        self.external_id = external_id
        super().__init__(f"{kind} {external_id} not found")

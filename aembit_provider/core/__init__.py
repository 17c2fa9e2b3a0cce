"""Core provider logic, independent of any particular host runtime.

Module Structure:
    - aembit/        : Low-level Aembit Cloud API client
    - entity.py      : Common entity envelope + base model ⇄ DTO transformer
    - variants.py    : "Exactly one of" variant registry
    - controller.py  : Create/read/update/delete orchestration per resource kind
    - exceptions.py  : Provider error taxonomy

Public APIs:
    Lifecycle (aembit_provider.core.controller):
        - ResourceController.create() / read() / update() / delete()
        - ResourceController.import_state() / list()
        - DeletePolicy

    Transformations (aembit_provider.core.entity):
        - EntityTransformer.model_to_dto() / dto_to_model()
        - EntityTransformer.to_state() / from_state()

    Variants (aembit_provider.core.variants):
        - VariantRegistry.variant_for() / discriminator_for() / select()
"""

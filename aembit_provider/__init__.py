"""Aembit Cloud resource provider package.

To build controllers for every resource kind:
    from aembit_provider.provider import Provider

To use the REST client directly:
    from aembit_provider.core.aembit import AembitClient, ResourceService
"""

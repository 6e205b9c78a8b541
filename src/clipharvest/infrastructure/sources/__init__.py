"""Video sources: endpoint constants, fetch strategies and the registry.

Submodules are imported explicitly (``sources.registry``, ``sources.strategies``)
since the parsers depend on ``sources.endpoints``.
"""

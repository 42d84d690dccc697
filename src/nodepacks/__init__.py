"""
Node packs shipped with flowhub.

- core: nodes that run in-process
- integrations: vendor nodes backed by proxy functions
"""

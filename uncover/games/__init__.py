"""
Games module - Bundled catalogs and setups.

Each card set has its own subpackage with:
- Card definitions in catalog JSON shape
- Game setup and hand-built scenarios
"""

"""
Publish workflow for Django models: draft/published/unpublished states,
preview and live URLs, and mirroring of published content into a separate
"live" database.
"""
__version__ = "0.4.0"

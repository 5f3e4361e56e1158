"""
Settings for the publish workflow.

Everything is configured through a single ``PUBLISH_WORKFLOW`` dict in the
Django settings, e.g.::

    PUBLISH_WORKFLOW = {
        "LIVE_DATABASE": "live",
        "LIVE_URL": "https://www.example.com",
        "PREVIEW_URL": "https://preview.example.com",
        "PUBLISH_CHECKED_BY_DEFAULT": True,
    }

The ``LIVE_DATABASE`` alias must also exist in ``DATABASES``. Settings are read
lazily and cached; the cache is dropped whenever Django reports that the
setting changed (e.g. ``override_settings`` in tests).
"""
from __future__ import annotations

from attrs import define, field, validators
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.signals import setting_changed
from django.dispatch import receiver

from .lib.cache import clear_lru_caches, lru_cache
from .lib.equality import DEFAULT_EXCLUDED_FIELDS

_optional_str = validators.optional(validators.instance_of(str))
_optional_bool = validators.optional(validators.instance_of(bool))


@define(frozen=True)
class WorkflowSettings:
    """
    Site-wide publish workflow configuration.
    """
    live_database: str = field(default="live", validator=validators.instance_of(str))
    live_url: str | None = field(default=None, validator=_optional_str)
    preview_url: str | None = field(default=None, validator=_optional_str)
    show_live_content_url: bool = field(default=True, validator=validators.instance_of(bool))
    publish_checked_by_default: bool = field(default=False, validator=validators.instance_of(bool))
    force_publish_regardless_of_status: bool = field(default=False, validator=validators.instance_of(bool))
    # None means "work it out from DATABASES".
    is_live_site: bool | None = field(default=None, validator=_optional_bool)
    diff_excluded_fields: frozenset[str] = field(default=DEFAULT_EXCLUDED_FIELDS, converter=frozenset)


# PUBLISH_WORKFLOW key -> WorkflowSettings attribute
_SETTING_NAMES = {
    "LIVE_DATABASE": "live_database",
    "LIVE_URL": "live_url",
    "PREVIEW_URL": "preview_url",
    "SHOW_LIVE_CONTENT_URL": "show_live_content_url",
    "PUBLISH_CHECKED_BY_DEFAULT": "publish_checked_by_default",
    "FORCE_PUBLISH_REGARDLESS_OF_STATUS": "force_publish_regardless_of_status",
    "IS_LIVE_SITE": "is_live_site",
    "DIFF_EXCLUDED_FIELDS": "diff_excluded_fields",
}


@lru_cache(maxsize=None)
def get_settings() -> WorkflowSettings:
    """
    Return the ``WorkflowSettings`` built from ``settings.PUBLISH_WORKFLOW``.

    Raises ImproperlyConfigured if the setting is not a dict, has unknown keys,
    or has values of the wrong type.
    """
    raw = getattr(settings, "PUBLISH_WORKFLOW", {})
    if not isinstance(raw, dict):
        raise ImproperlyConfigured("PUBLISH_WORKFLOW must be a dict.")

    unknown = sorted(set(raw) - set(_SETTING_NAMES))
    if unknown:
        raise ImproperlyConfigured(
            f"Unknown PUBLISH_WORKFLOW settings: {', '.join(unknown)}"
        )

    try:
        return WorkflowSettings(**{_SETTING_NAMES[key]: value for key, value in raw.items()})
    except TypeError as exc:
        raise ImproperlyConfigured(f"Invalid PUBLISH_WORKFLOW setting: {exc}") from exc


@receiver(setting_changed)
def _reset_cached_settings(sender, setting, **kwargs):  # pylint: disable=unused-argument
    if setting in ("PUBLISH_WORKFLOW", "DATABASES"):
        clear_lru_caches()

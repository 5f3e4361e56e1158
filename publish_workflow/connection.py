"""
Access to the live database.

The live database is just another entry in ``settings.DATABASES``. Django owns
the connection: it opens it on first use, keeps it around according to the
alias's ``CONN_MAX_AGE``, and reconnects after it has been closed. Timeouts
and keep-alive belong in the alias's ``OPTIONS``.

We never connect at import time or in ``AppConfig.ready()``.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import DEFAULT_DB_ALIAS, DatabaseError, connections

from .conf import get_settings
from .exceptions import LiveDatabaseUnavailable
from .lib.cache import lru_cache

log = logging.getLogger(__name__)

# Two aliases point at the same data if these all match.
_DATABASE_IDENTITY_KEYS = ("ENGINE", "NAME", "HOST", "PORT")


def get_live_alias() -> str:
    """
    Return the database alias that holds live content.
    """
    alias = get_settings().live_database
    if alias not in settings.DATABASES:
        raise ImproperlyConfigured(
            f"PUBLISH_WORKFLOW['LIVE_DATABASE'] is {alias!r}, but there is no "
            f"such alias in DATABASES."
        )
    return alias


def connect_live_database():
    """
    Return the Django connection for the live database, connecting if needed.

    Raises LiveDatabaseUnavailable if the connection can't be established.
    """
    alias = get_live_alias()
    connection = connections[alias]
    try:
        connection.ensure_connection()
    except DatabaseError as exc:
        log.exception("Could not connect to the live database %r", alias)
        raise LiveDatabaseUnavailable() from exc
    return connection


@lru_cache(maxsize=None)
def is_live_database() -> bool:
    """
    Is this site running against the live database?

    The live site serves published content and must not edit it, so the admin
    becomes read-only and the save hook is switched off. ``IS_LIVE_SITE``
    overrides the check; otherwise the default database is compared with the
    live alias.
    """
    workflow_settings = get_settings()
    if workflow_settings.is_live_site is not None:
        return workflow_settings.is_live_site

    live_alias = workflow_settings.live_database
    if live_alias == DEFAULT_DB_ALIAS:
        return True
    if live_alias not in settings.DATABASES:
        return False

    default_db = connections[DEFAULT_DB_ALIAS].settings_dict
    live_db = connections[live_alias].settings_dict
    return all(
        (default_db.get(key) or "") == (live_db.get(key) or "")
        for key in _DATABASE_IDENTITY_KEYS
    )

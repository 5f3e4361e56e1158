"""
URL templating for preview and live links.

Models describe where they show up on the website with a path template like
``/news/:slug`` or ``/events/:year/:slug``. Each ``:name`` placeholder is
filled in from the attribute of the same name on the model instance.
"""
from __future__ import annotations

import re

PATH_PARAM_RE = re.compile(r":([\w\-.]+)")


def expand_path(url_path: str, obj) -> str:
    """
    Replace every ``:param`` in ``url_path`` with ``str(obj.param)``.

    Missing attributes and ``None`` values become an empty string.
    """
    def _param_value(match: re.Match) -> str:
        value = getattr(obj, match.group(1), None)
        return "" if value is None else str(value)

    return PATH_PARAM_RE.sub(_param_value, url_path)


def join_url(base_url: str, path: str) -> str:
    """
    Join ``base_url`` and ``path`` with exactly one slash between them.

    Unlike ``os.path.join`` this leaves the ``scheme://`` part alone.
    """
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"

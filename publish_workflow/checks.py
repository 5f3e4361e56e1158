"""
Django system checks for publish workflow configuration.
"""
from django.conf import settings
from django.core.checks import Error, register
from django.core.exceptions import ImproperlyConfigured

from .conf import get_settings


@register()
def check_live_database(app_configs, **kwargs):  # pylint: disable=unused-argument
    """
    Make sure PUBLISH_WORKFLOW is valid and its live alias exists.
    """
    try:
        workflow_settings = get_settings()
    except ImproperlyConfigured as exc:
        return [
            Error(
                str(exc),
                hint="See publish_workflow.conf for the supported settings.",
                id="publish_workflow.E002",
            )
        ]

    if workflow_settings.live_database not in settings.DATABASES:
        return [
            Error(
                f"The live database alias {workflow_settings.live_database!r} is not in DATABASES.",
                hint="Add it to DATABASES or set PUBLISH_WORKFLOW['LIVE_DATABASE'].",
                id="publish_workflow.E001",
            )
        ]
    return []

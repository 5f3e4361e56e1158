"""
Signal handlers that hook the publish workflow into model saves.

One ``pre_save`` receiver serves every registered model; it is connected in
``PublishWorkflowConfig.ready()``. The ``post_save`` receiver only has work to
do for new documents that are published by their very first save.
"""
from .api import SAVE_FLAG_FIELDS, complete_pending_publish, reset_save_flags, run_save_workflow
from .conf import get_settings
from .connection import is_live_database
from .registry import is_publishable_model


def _hook_applies(sender, raw, using) -> bool:
    # Fixture loading is written as-is.
    if raw:
        return False
    if not is_publishable_model(sender):
        return False
    # Our own writes to the live database, and anything on the live site.
    if using == get_settings().live_database or is_live_database():
        return False
    return True


def run_publish_workflow(sender, instance, raw=False, using=None, update_fields=None, **kwargs):
    """
    Apply the publish workflow to a registered model instance before it's saved.

    Partial saves don't run the workflow, but if they write any of the save
    flags, those are reset so that a checked flag is never stored.
    """
    if not _hook_applies(sender, raw, using):
        return
    if update_fields is not None:
        if SAVE_FLAG_FIELDS.intersection(update_fields):
            reset_save_flags(instance)
        return
    run_save_workflow(instance)


def finish_first_save_publish(sender, instance, created=False, raw=False, using=None, update_fields=None, **kwargs):
    """
    Mirror a new document that was published while it had no primary key yet.
    """
    if created and update_fields is None and _hook_applies(sender, raw, using):
        complete_pending_publish(instance, using=using)

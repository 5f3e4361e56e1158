"""
Publish workflow API.

The save hook (see ``handlers.py``) drives everything through
``run_save_workflow``, which looks at the transient flags on the document
being saved and picks one of four outcomes:

1. publish: copy the document into the live database
2. rollback: overwrite the document with its live copy
3. unpublish: remove the live copy
4. otherwise: mark the document as a draft if it no longer matches its live
   copy

The live copy of a document is the row with the same primary key in the same
table of the live database (``PUBLISH_WORKFLOW['LIVE_DATABASE']``).

Code outside the save hook should normally use ``publish``, ``unpublish``,
``rollback`` and ``save_with_same_status``, which just set the right flag and
save, so that everything goes through the same path as an admin save.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from django.db import DatabaseError, transaction
from django.urls import NoReverseMatch, reverse
from django.utils import timezone

from .conf import get_settings
from .connection import connect_live_database, get_live_alias
from .exceptions import LiveDatabaseError, LiveDocumentNotFound, PublishWorkflowError
from .lib.equality import objects_differ
from .lib.urls import expand_path, join_url
from .models import PublishStatus
from .registry import get_publishable_options
from .signals import document_published, document_rolled_back, document_unpublished

log = logging.getLogger(__name__)

__all__ = [
    "publish",
    "unpublish",
    "rollback",
    "save_with_same_status",
    "get_live_document",
    "differs_from_live",
    "document_values",
    "get_live_url",
    "get_preview_url",
    "get_content_url",
    "publish_on_save_default",
    "should_publish",
    "reset_save_flags",
    "run_save_workflow",
    "complete_pending_publish",
]

PREVIEW_URL_PLACEHOLDER = "Save to generate preview link"

# Transient, non-field attributes we set on instances while they are saved.
_SAME_STATUS_ATTR = "_publish_workflow_same_status"
_PENDING_PUBLISH_ATTR = "_publish_workflow_pending_publish"

# Checkbox fields that only mean something for the save they're set on.
SAVE_FLAG_FIELDS = frozenset({"publish_on_save", "unpublish_on_save", "rollback_on_save"})


def publish(instance) -> None:
    """
    Publish ``instance`` to the live database.

    New documents are never published on their first save, so an unsaved
    ``instance`` is saved once before it is published.
    """
    if instance._state.adding:
        instance.save()
    instance.publish_on_save = True
    instance.save()


def unpublish(instance) -> None:
    """
    Remove ``instance``'s live copy and mark it unpublished.
    """
    instance.unpublish_on_save = True
    instance.save()


def rollback(instance) -> None:
    """
    Throw away unpublished changes to ``instance``.

    Raises LiveDocumentNotFound if it was never published.
    """
    instance.rollback_on_save = True
    instance.save()


def save_with_same_status(instance) -> None:
    """
    Save ``instance``, re-publishing it if (and only if) it's published.

    This ignores the transient flags and is meant for scripted bulk changes
    that should reach the live site without an editor publishing each
    document.
    """
    setattr(instance, _SAME_STATUS_ATTR, True)
    try:
        instance.save()
    finally:
        delattr(instance, _SAME_STATUS_ATTR)


def document_values(instance) -> dict[str, Any]:
    """
    Return the stored values of ``instance``, keyed by column attribute name.

    This matches the shape of ``QuerySet.values()`` so a document can be
    compared against its live row.
    """
    return {
        field.attname: getattr(instance, field.attname)
        for field in instance._meta.concrete_fields
    }


def get_live_document(instance) -> dict[str, Any] | None:
    """
    Return the live copy of ``instance`` as a dict, or None if there isn't one.
    """
    if instance.pk is None:
        return None
    alias = get_live_alias()
    connect_live_database()
    with _live_operation("read", instance):
        return (
            type(instance)._base_manager.using(alias)
            .filter(pk=instance.pk)
            .values()
            .first()
        )


def differs_from_live(instance) -> bool:
    """
    Does ``instance`` have changes that aren't on the live site yet?

    Documents without a live copy never differ.
    """
    live_values = get_live_document(instance)
    if live_values is None:
        return False
    return objects_differ(
        document_values(instance),
        live_values,
        get_settings().diff_excluded_fields,
    )


def get_live_url(instance) -> str | None:
    """
    URL of ``instance`` on the live website.

    None if there's no ``LIVE_URL`` or the model has no ``path``.
    """
    live_url = get_settings().live_url
    path = get_publishable_options(type(instance)).path
    if not live_url or not path:
        return None
    return join_url(live_url, expand_path(path, instance))


def get_preview_url(instance) -> str | None:
    """
    URL of ``instance`` on the preview website.

    None if there's no ``PREVIEW_URL`` or the model has no ``path``. Documents
    without a slug get a placeholder message instead of a link.
    """
    preview_url = get_settings().preview_url
    path = get_publishable_options(type(instance)).path
    if not preview_url or not path:
        return None
    if not getattr(instance, "slug", None):
        return PREVIEW_URL_PLACEHOLDER
    return join_url(preview_url, expand_path(path, instance))


def get_content_url(instance) -> str | None:
    """
    URL of ``instance``'s admin page on the live site.
    """
    live_url = get_settings().live_url
    if not live_url:
        return None
    return join_url(live_url, _admin_change_path(instance))


def _admin_change_path(instance) -> str:
    opts = instance._meta
    try:
        return reverse(
            f"admin:{opts.app_label}_{opts.model_name}_change",
            args=(instance.pk,),
        )
    except NoReverseMatch:
        # The admin isn't mounted here; assume the conventional location.
        return f"/admin/{opts.app_label}/{opts.model_name}/{instance.pk}/change/"


def publish_on_save_default(model_cls) -> bool:
    """
    Value ``publish_on_save`` is reset to after every save of ``model_cls``.
    """
    options = get_publishable_options(model_cls)
    return get_settings().publish_checked_by_default or options.publish_by_default


def should_publish(instance) -> bool:
    """
    Decide whether saving ``instance`` should publish it.
    """
    is_published = instance.publish_status == PublishStatus.PUBLISHED

    if get_settings().force_publish_regardless_of_status and (is_published or instance.publish_on_save):
        return True

    if getattr(instance, _SAME_STATUS_ATTR, False):
        return is_published

    # New documents are created first. They get published on a later save
    # if publish_on_save is still checked.
    if instance._state.adding:
        return False

    return instance.publish_on_save


def reset_save_flags(instance) -> None:
    instance.publish_on_save = publish_on_save_default(type(instance))
    instance.unpublish_on_save = False
    instance.rollback_on_save = False


def run_save_workflow(instance) -> None:
    """
    Apply the publish workflow to ``instance``, which is about to be saved.

    Raises a PublishWorkflowError subclass (aborting the save) if the live
    database can't be read or written.
    """
    publish_now = should_publish(instance)
    unpublish_now = instance.unpublish_on_save
    rollback_now = instance.rollback_on_save

    # Reset before copying anything, so the live copy never has flags set.
    reset_save_flags(instance)

    if publish_now:
        _publish(instance)
    elif rollback_now:
        _rollback(instance)
    else:
        preview_url = get_preview_url(instance)
        if preview_url is not None:
            instance.publish_preview_url = preview_url

        if unpublish_now:
            _unpublish(instance)
        elif differs_from_live(instance):
            instance.publish_status = PublishStatus.DRAFT


def complete_pending_publish(instance, using: str | None = None) -> None:
    """
    Finish publishing a document that had no primary key in ``_publish``.

    This only happens for brand new documents with auto-incremented keys when
    ``FORCE_PUBLISH_REGARDLESS_OF_STATUS`` is on. The document has just been
    inserted, so its URLs are stored with a queryset update (which does not
    trigger the save hook again) and then it is mirrored.

    If the live copy can't be written, the insert is undone before the error
    is re-raised, so a failed publish never leaves a stored document behind.
    """
    if not getattr(instance, _PENDING_PUBLISH_ATTR, False):
        return
    delattr(instance, _PENDING_PUBLISH_ATTR)

    model_cls = type(instance)
    _set_published_urls(instance)
    model_cls._base_manager.using(using).filter(pk=instance.pk).update(
        publish_live_url=instance.publish_live_url,
        publish_content_url=instance.publish_content_url,
    )
    try:
        _write_live_copy(instance)
    except PublishWorkflowError:
        model_cls._base_manager.using(using).filter(pk=instance.pk).delete()
        instance.pk = None
        instance._state.adding = True
        raise


def _publish(instance) -> None:
    instance.publish_status = PublishStatus.PUBLISHED

    options = get_publishable_options(type(instance))
    if options.track_publish_date and instance.publish_date is None:
        instance.publish_date = timezone.now()

    if instance.pk is None:
        setattr(instance, _PENDING_PUBLISH_ATTR, True)
        return

    _set_published_urls(instance)
    _write_live_copy(instance)


def _set_published_urls(instance) -> None:
    content_url = get_content_url(instance)
    if content_url is not None:
        instance.publish_content_url = content_url
    live_url = get_live_url(instance)
    if live_url is not None:
        instance.publish_live_url = live_url


def _write_live_copy(instance) -> None:
    """
    Insert or update the live copy of ``instance``.
    """
    model_cls = type(instance)
    alias = get_live_alias()
    connect_live_database()

    values = document_values(instance)
    pk_attnames = {field.attname for field in instance._meta.concrete_fields if field.primary_key}

    with _live_operation("publish", instance), transaction.atomic(using=alias):
        live_qs = model_cls._base_manager.using(alias).filter(pk=instance.pk)
        if live_qs.exists():
            live_qs.update(**{
                attname: value for attname, value in values.items()
                if attname not in pk_attnames
            })
        else:
            # Saving against the live alias does not re-enter the save hook.
            model_cls(**values).save(using=alias, force_insert=True)

    log.info("Published %s pk=%s", instance._meta.label, instance.pk)
    document_published.send(sender=model_cls, instance=instance, using=alias)


def _unpublish(instance) -> None:
    model_cls = type(instance)
    alias = get_live_alias()
    connect_live_database()

    instance.publish_status = PublishStatus.UNPUBLISHED
    with _live_operation("unpublish", instance):
        deleted, _ = model_cls._base_manager.using(alias).filter(pk=instance.pk).delete()

    log.info("Unpublished %s pk=%s (live copy removed: %s)", instance._meta.label, instance.pk, bool(deleted))
    document_unpublished.send(sender=model_cls, instance=instance, using=alias)


def _rollback(instance) -> None:
    live_values = get_live_document(instance)
    if live_values is None:
        raise LiveDocumentNotFound(
            f"{instance._meta.label} pk={instance.pk} has no live version to roll back to."
        )

    for attname, value in live_values.items():
        setattr(instance, attname, value)
    reset_save_flags(instance)

    log.info("Rolled back %s pk=%s to its live version", instance._meta.label, instance.pk)
    document_rolled_back.send(sender=type(instance), instance=instance, using=get_live_alias())


@contextmanager
def _live_operation(action: str, instance):
    """
    Turn database errors from the live database into LiveDatabaseError.
    """
    try:
        yield
    except DatabaseError as exc:
        log.exception(
            "Error with live database operation (%s %s pk=%s)",
            action,
            instance._meta.label,
            instance.pk,
        )
        raise LiveDatabaseError() from exc

"""
Django admin support for publishable models.

Use ``PublishableModelAdmin`` instead of ``admin.ModelAdmin`` for registered
models. It adds a "Publishing Workflow" section to the change form that only
shows the options that make sense for the document's current status, and it
makes the admin read-only on the live site.
"""
from __future__ import annotations

from django.contrib import admin

from .api import publish_on_save_default
from .conf import get_settings
from .connection import is_live_database
from .models import PublishStatus
from .registry import get_publishable_options

PUBLISHING_FIELDSET_TITLE = "Publishing Workflow"

# Every field we manage; they're kept out of the model's own fieldsets.
WORKFLOW_FIELDS = (
    "publish_status",
    "publish_date",
    "publish_display_date",
    "publish_preview_url",
    "publish_live_url",
    "publish_content_url",
    "publish_on_save",
    "unpublish_on_save",
    "rollback_on_save",
)

READONLY_WORKFLOW_FIELDS = (
    "publish_status",
    "publish_preview_url",
    "publish_live_url",
    "publish_content_url",
)


class PublishStatusFilter(admin.SimpleListFilter):
    """
    Filter the change list by publish status.
    """
    title = "publishing status"
    parameter_name = "publish_status"

    def lookups(self, request, model_admin):
        return PublishStatus.choices

    def queryset(self, request, queryset):
        if self.value() in PublishStatus.values:
            return queryset.filter(publish_status=self.value())
        return queryset


def get_workflow_fields(model_cls, obj=None) -> list[str]:
    """
    Return the workflow fields to show for ``obj`` (None on the add page).
    """
    workflow_settings = get_settings()
    options = get_publishable_options(model_cls)
    live_site = is_live_database()

    status = obj.publish_status if obj is not None else PublishStatus.UNPUBLISHED

    fields = ["publish_status"]
    if options.track_publish_date:
        fields += ["publish_date", "publish_display_date"]

    if live_site:
        return fields

    if (
        options.path
        and workflow_settings.preview_url is not None
        and status in (PublishStatus.UNPUBLISHED, PublishStatus.DRAFT)
    ):
        fields.append("publish_preview_url")

    if options.path and workflow_settings.live_url is not None and status == PublishStatus.PUBLISHED:
        fields.append("publish_live_url")

    if (
        workflow_settings.show_live_content_url
        and workflow_settings.live_url is not None
        and status == PublishStatus.PUBLISHED
    ):
        fields.append("publish_content_url")

    fields.append("publish_on_save")

    if not options.no_unpublish and status == PublishStatus.PUBLISHED:
        fields.append("unpublish_on_save")

    if status == PublishStatus.DRAFT:
        fields.append("rollback_on_save")

    return fields


class PublishableModelAdmin(admin.ModelAdmin):
    """
    ModelAdmin for models registered with the publish workflow.

    On the live site, editing happens elsewhere: nothing can be added, changed
    or deleted here.
    """

    def has_add_permission(self, request):
        if is_live_database():
            return False
        return super().has_add_permission(request)

    def has_change_permission(self, request, obj=None):
        if is_live_database():
            return False
        return super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        if is_live_database():
            return False
        return super().has_delete_permission(request, obj)

    def get_readonly_fields(self, request, obj=None):
        readonly_fields = list(super().get_readonly_fields(request, obj))
        readonly_fields += [name for name in READONLY_WORKFLOW_FIELDS if name not in readonly_fields]
        return readonly_fields

    def get_fieldsets(self, request, obj=None):
        fieldsets = []
        for name, opts in super().get_fieldsets(request, obj):
            fields = [field for field in opts["fields"] if field not in WORKFLOW_FIELDS]
            if fields:
                fieldsets.append((name, {**opts, "fields": fields}))

        fieldsets.append(
            (PUBLISHING_FIELDSET_TITLE, {"fields": get_workflow_fields(self.model, obj)})
        )
        return fieldsets

    def get_changeform_initial_data(self, request):
        initial = super().get_changeform_initial_data(request)
        initial.setdefault("publish_on_save", publish_on_save_default(self.model))
        return initial

    def get_list_display(self, request):
        list_display = list(super().get_list_display(request))
        if "publish_status" not in list_display:
            list_display.append("publish_status")
        return list_display

    def get_list_filter(self, request):
        return [*super().get_list_filter(request), PublishStatusFilter]

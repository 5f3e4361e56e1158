"""
Model mixins that add publish workflow fields to content models.

There are no concrete models in this app. Content apps mix these into their
own models and then register them (see ``registry.register_publishable_model``)
so that the save hook knows about them::

    @publishable(path="/news/:slug", track_publish_date=True)
    class Article(PublishableMixin, PublishDateMixin, models.Model):
        title = models.CharField(max_length=255)
        slug = models.SlugField()

Remember to create migrations for your model after adding the mixins.
"""
from __future__ import annotations

from django.db import models


class PublishStatus(models.TextChoices):
    """
    Where a document stands relative to its live copy.
    """
    # There's no live copy.
    UNPUBLISHED = "unpublished", "Unpublished"
    # The live copy matches the document as of its last publish.
    PUBLISHED = "published", "Published"
    # There's a live copy, but the document has changed since.
    DRAFT = "draft", "Draft"


class PublishableMixin(models.Model):
    """
    Fields for documents that go through the publish workflow.

    ``publish_status`` and the three URLs are maintained by the save hook and
    are never edited directly.

    ``publish_on_save``, ``unpublish_on_save`` and ``rollback_on_save`` are
    requests for the next save. The save hook acts on them and resets them
    before the row is written, so they are never stored as "set". Because the
    reset value of ``publish_on_save`` depends on settings and on the model's
    registration options, the column default is always False and the effective
    default is applied by the hook (and by the admin for new documents).
    """
    publish_status = models.CharField(
        "Publishing Status",
        max_length=16,
        choices=PublishStatus.choices,
        default=PublishStatus.UNPUBLISHED,
        editable=False,
        db_index=True,
    )

    # These are plain CharFields rather than URLFields because the preview
    # link can hold a "save first" placeholder message.
    publish_preview_url = models.CharField(
        "Preview URL", max_length=2000, blank=True, default="", editable=False,
    )
    publish_live_url = models.CharField(
        "Live URL", max_length=2000, blank=True, default="", editable=False,
    )
    publish_content_url = models.CharField(
        "Content URL", max_length=2000, blank=True, default="", editable=False,
    )

    publish_on_save = models.BooleanField("Publish on save", default=False)
    unpublish_on_save = models.BooleanField("Unpublish on save", default=False)
    rollback_on_save = models.BooleanField("Rollback draft to live version", default=False)

    @property
    def is_published(self) -> bool:
        return self.publish_status == PublishStatus.PUBLISHED

    @property
    def is_draft(self) -> bool:
        return self.publish_status == PublishStatus.DRAFT

    class Meta:
        abstract = True


class PublishDateMixin(models.Model):
    """
    Publish date tracking, for models registered with ``track_publish_date``.

    ``publish_date`` is filled in the first time the document is published.
    ``publish_display_date`` lets editors override how that date is displayed
    on the website.
    """
    publish_date = models.DateTimeField("Published Date", null=True, blank=True, db_index=True)
    publish_display_date = models.CharField(
        "Displayed Date",
        max_length=255,
        blank=True,
        default="",
        help_text=(
            "Use this field to override the autogenerated formatted Published "
            "Date (MM/DD/YYYY) on the website. The website will display the "
            "date exactly as entered above."
        ),
    )

    @property
    def display_date(self) -> str:
        if self.publish_display_date:
            return self.publish_display_date
        if self.publish_date:
            return self.publish_date.strftime("%m/%d/%Y")
        return ""

    class Meta:
        abstract = True

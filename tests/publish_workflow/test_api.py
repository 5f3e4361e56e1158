"""
Tests of the publish workflow's save hook and python API
"""
from __future__ import annotations

from datetime import datetime, timezone
from unittest import mock

import ddt  # type: ignore[import]
import pytest
from django.db import DatabaseError
from django.test import override_settings
from freezegun import freeze_time

from publish_workflow import api as publish_api
from publish_workflow.exceptions import (
    SAVE_ERROR_MESSAGE,
    LiveDatabaseError,
    LiveDatabaseUnavailable,
    LiveDocumentNotFound,
)
from publish_workflow.lib.test_utils import TestCase
from publish_workflow.models import PublishStatus
from publish_workflow.signals import document_published, document_rolled_back, document_unpublished
from tests.example_app.models import Article, FeatureArticle, Page


class PublishWorkflowTestCase(TestCase):
    """
    Shared helpers for publish workflow tests.
    """

    def create_article(self, title="Hello World", slug="hello-world", **kwargs) -> Article:
        return Article.objects.create(title=title, slug=slug, **kwargs)

    def live_article(self, article: Article) -> Article | None:
        return Article.objects.using("live").filter(pk=article.pk).first()


class CreateTestCase(PublishWorkflowTestCase):
    """
    Saving a brand new document.
    """

    def test_new_document_is_not_published(self):
        article = self.create_article(publish_on_save=True)
        assert article.publish_status == PublishStatus.UNPUBLISHED
        assert self.live_article(article) is None
        # The request was consumed.
        assert article.publish_on_save is False

    def test_preview_url(self):
        article = self.create_article()
        assert article.publish_preview_url == "https://preview.example.com/news/hello-world"
        assert Article.objects.get(pk=article.pk).publish_preview_url == article.publish_preview_url

    def test_preview_url_without_slug(self):
        article = self.create_article(slug="")
        assert article.publish_preview_url == publish_api.PREVIEW_URL_PLACEHOLDER

    @override_settings(PUBLISH_WORKFLOW={"LIVE_DATABASE": "live"})
    def test_no_preview_url_configured(self):
        article = self.create_article()
        assert article.publish_preview_url == ""

    def test_model_without_path(self):
        page = Page.objects.create(title="About")
        assert page.publish_preview_url == ""
        # Page is registered with publish_by_default.
        assert page.publish_on_save is True


class PublishTestCase(PublishWorkflowTestCase):
    """
    Publishing documents to the live database.
    """

    def test_publish(self):
        article = self.create_article(body={"blocks": [{"type": "text", "value": "Hi"}]})
        article.publish_on_save = True
        article.save()

        assert article.publish_status == PublishStatus.PUBLISHED
        assert article.publish_on_save is False
        assert article.publish_live_url == "https://www.example.com/news/hello-world"
        assert article.publish_content_url == (
            f"https://www.example.com/admin/example_app/article/{article.pk}/change/"
        )

        live = self.live_article(article)
        assert live is not None
        assert live.title == "Hello World"
        assert live.body == {"blocks": [{"type": "text", "value": "Hi"}]}
        assert live.publish_status == PublishStatus.PUBLISHED
        assert live.publish_live_url == article.publish_live_url
        # Flags were reset before the copy was made.
        assert live.publish_on_save is False
        assert live.unpublish_on_save is False
        assert live.rollback_on_save is False

    def test_publish_api(self):
        article = Article(title="Unsaved", slug="unsaved")
        publish_api.publish(article)

        article.refresh_from_db()
        assert article.publish_status == PublishStatus.PUBLISHED
        assert self.live_article(article).title == "Unsaved"

    def test_republish_updates_live_copy(self):
        article = self.create_article()
        publish_api.publish(article)

        article.title = "Hello Again"
        publish_api.publish(article)

        assert Article.objects.using("live").filter(pk=article.pk).count() == 1
        assert self.live_article(article).title == "Hello Again"

    def test_publish_date(self):
        article = self.create_article()
        with freeze_time(datetime(2024, 3, 7, 15, 0, tzinfo=timezone.utc)):
            publish_api.publish(article)
        assert article.publish_date == datetime(2024, 3, 7, 15, 0, tzinfo=timezone.utc)
        assert self.live_article(article).publish_date == article.publish_date

        # Publishing again keeps the original date.
        with freeze_time(datetime(2024, 5, 1, tzinfo=timezone.utc)):
            publish_api.publish(article)
        assert article.publish_date == datetime(2024, 3, 7, 15, 0, tzinfo=timezone.utc)

    def test_published_document_without_changes_stays_published(self):
        article = self.create_article(body={"tags": ["a", "b"]})
        publish_api.publish(article)

        article = Article.objects.get(pk=article.pk)
        article.save()
        assert article.publish_status == PublishStatus.PUBLISHED

    def test_signal(self):
        receiver = mock.Mock()
        document_published.connect(receiver)
        try:
            article = self.create_article()
            publish_api.publish(article)
        finally:
            document_published.disconnect(receiver)

        receiver.assert_called_once()
        assert receiver.call_args.kwargs["sender"] is Article
        assert receiver.call_args.kwargs["instance"] is article
        assert receiver.call_args.kwargs["using"] == "live"

    @override_settings(PUBLISH_WORKFLOW={"LIVE_DATABASE": "live", "PUBLISH_CHECKED_BY_DEFAULT": True})
    def test_publish_checked_by_default(self):
        article = self.create_article()
        assert article.publish_on_save is True

        # Since it's still checked, the next save publishes.
        article.save()
        assert article.publish_status == PublishStatus.PUBLISHED
        assert article.publish_on_save is True
        # No LIVE_URL configured, so no URLs.
        assert article.publish_live_url == ""
        assert article.publish_content_url == ""


@ddt.ddt
class ForcePublishTestCase(PublishWorkflowTestCase):
    """
    FORCE_PUBLISH_REGARDLESS_OF_STATUS publishes even brand new documents.
    """

    @override_settings(PUBLISH_WORKFLOW={
        "LIVE_DATABASE": "live",
        "LIVE_URL": "https://www.example.com",
        "FORCE_PUBLISH_REGARDLESS_OF_STATUS": True,
    })
    def test_new_document(self):
        article = Article(title="Breaking", slug="breaking", publish_on_save=True)
        article.save()

        assert article.publish_status == PublishStatus.PUBLISHED
        live = self.live_article(article)
        assert live is not None
        assert live.publish_status == PublishStatus.PUBLISHED

        # URLs that need the primary key were filled in after the insert.
        stored = Article.objects.get(pk=article.pk)
        assert stored.publish_content_url == (
            f"https://www.example.com/admin/example_app/article/{article.pk}/change/"
        )
        assert stored.publish_live_url == "https://www.example.com/news/breaking"
        assert live.publish_content_url == stored.publish_content_url

    @override_settings(PUBLISH_WORKFLOW={"LIVE_DATABASE": "live", "FORCE_PUBLISH_REGARDLESS_OF_STATUS": True})
    def test_published_document_is_always_republished(self):
        article = self.create_article()
        publish_api.publish(article)

        Article.objects.filter(pk=article.pk).update(title="Changed behind our back")
        article.refresh_from_db()
        article.save()

        assert article.publish_status == PublishStatus.PUBLISHED
        assert self.live_article(article).title == "Changed behind our back"

    @ddt.data(True, False)
    def test_without_force(self, publish_on_save):
        article = Article(title="Breaking", slug="breaking", publish_on_save=publish_on_save)
        article.save()
        assert article.publish_status == PublishStatus.UNPUBLISHED
        assert self.live_article(article) is None

    @override_settings(PUBLISH_WORKFLOW={"LIVE_DATABASE": "live", "FORCE_PUBLISH_REGARDLESS_OF_STATUS": True})
    def test_new_document_live_write_error(self):
        article = Article(title="Breaking", slug="breaking", publish_on_save=True)
        with mock.patch("publish_workflow.api.transaction") as mock_transaction:
            mock_transaction.atomic.side_effect = DatabaseError("disk full")
            with pytest.raises(LiveDatabaseError, match=SAVE_ERROR_MESSAGE):
                article.save()

        # The failed publish doesn't leave the new document behind.
        assert Article.objects.count() == 0
        assert Article.objects.using("live").count() == 0
        assert article.pk is None
        assert article._state.adding is True


class DraftTestCase(PublishWorkflowTestCase):
    """
    Documents that change after they were published become drafts.
    """

    def test_change_makes_draft(self):
        article = self.create_article()
        publish_api.publish(article)

        article.title = "Edited"
        article.save()

        assert article.publish_status == PublishStatus.DRAFT
        assert Article.objects.get(pk=article.pk).publish_status == PublishStatus.DRAFT
        # The live site still has the published version.
        assert self.live_article(article).title == "Hello World"

    def test_nested_change_makes_draft(self):
        article = self.create_article(body={"blocks": [{"type": "text", "value": "a"}]})
        publish_api.publish(article)

        article.body = {"blocks": [{"type": "text", "value": "b"}]}
        article.save()
        assert article.publish_status == PublishStatus.DRAFT

    def test_draft_stays_draft(self):
        article = self.create_article()
        publish_api.publish(article)
        article.title = "Edited"
        article.save()

        article.save()
        assert article.publish_status == PublishStatus.DRAFT

    def test_unpublished_document_never_becomes_draft(self):
        article = self.create_article()
        article.title = "Edited"
        article.save()
        assert article.publish_status == PublishStatus.UNPUBLISHED

    def test_differs_from_live(self):
        article = self.create_article()
        assert publish_api.differs_from_live(article) is False

        publish_api.publish(article)
        assert publish_api.differs_from_live(article) is False

        article.title = "Edited"
        assert publish_api.differs_from_live(article) is True

    def test_get_live_document(self):
        article = self.create_article()
        assert publish_api.get_live_document(article) is None
        assert publish_api.get_live_document(Article(title="Unsaved")) is None

        publish_api.publish(article)
        live_values = publish_api.get_live_document(article)
        assert live_values["id"] == article.pk
        assert live_values["title"] == "Hello World"
        assert live_values["publish_status"] == PublishStatus.PUBLISHED


class RollbackTestCase(PublishWorkflowTestCase):
    """
    Throwing away draft changes.
    """

    def test_rollback(self):
        article = self.create_article(body={"value": 1})
        publish_api.publish(article)
        article.title = "Edited"
        article.body = {"value": 2}
        article.save()
        assert article.publish_status == PublishStatus.DRAFT

        article.rollback_on_save = True
        article.save()

        assert article.title == "Hello World"
        assert article.body == {"value": 1}
        assert article.publish_status == PublishStatus.PUBLISHED
        assert article.rollback_on_save is False

        stored = Article.objects.get(pk=article.pk)
        assert stored.title == "Hello World"
        assert stored.publish_status == PublishStatus.PUBLISHED

    def test_rollback_api_and_signal(self):
        article = self.create_article()
        publish_api.publish(article)
        article.title = "Edited"
        article.save()

        receiver = mock.Mock()
        document_rolled_back.connect(receiver)
        try:
            publish_api.rollback(article)
        finally:
            document_rolled_back.disconnect(receiver)

        assert article.title == "Hello World"
        receiver.assert_called_once()

    def test_rollback_without_live_copy(self):
        article = self.create_article()
        article.title = "Edited"
        with pytest.raises(LiveDocumentNotFound):
            publish_api.rollback(article)
        # The save was aborted.
        assert Article.objects.get(pk=article.pk).title == "Hello World"

    def test_publish_wins_over_rollback(self):
        article = self.create_article()
        publish_api.publish(article)
        article.title = "Edited"
        article.publish_on_save = True
        article.rollback_on_save = True
        article.save()

        assert article.title == "Edited"
        assert self.live_article(article).title == "Edited"


class UnpublishTestCase(PublishWorkflowTestCase):
    """
    Removing documents from the live database.
    """

    def test_unpublish(self):
        article = self.create_article()
        publish_api.publish(article)

        article.unpublish_on_save = True
        article.save()

        assert article.publish_status == PublishStatus.UNPUBLISHED
        assert article.unpublish_on_save is False
        assert self.live_article(article) is None
        # The preview link is shown again for unpublished documents.
        assert article.publish_preview_url == "https://preview.example.com/news/hello-world"

    def test_unpublish_never_published(self):
        article = self.create_article()
        receiver = mock.Mock()
        document_unpublished.connect(receiver)
        try:
            publish_api.unpublish(article)
        finally:
            document_unpublished.disconnect(receiver)

        assert article.publish_status == PublishStatus.UNPUBLISHED
        receiver.assert_called_once()

    def test_publish_wins_over_unpublish(self):
        article = self.create_article()
        publish_api.publish(article)
        article.publish_on_save = True
        article.unpublish_on_save = True
        article.save()

        assert article.publish_status == PublishStatus.PUBLISHED
        assert self.live_article(article) is not None


class SaveWithSameStatusTestCase(PublishWorkflowTestCase):
    """
    Re-saving documents without changing their status.
    """

    def test_published_document_is_republished(self):
        article = self.create_article()
        publish_api.publish(article)

        article.title = "Fixed typo"
        publish_api.save_with_same_status(article)

        assert article.publish_status == PublishStatus.PUBLISHED
        assert self.live_article(article).title == "Fixed typo"
        assert not hasattr(article, "_publish_workflow_same_status")

    def test_unpublished_document_is_not_published(self):
        article = self.create_article()
        article.publish_on_save = True
        publish_api.save_with_same_status(article)

        assert article.publish_status == PublishStatus.UNPUBLISHED
        assert self.live_article(article) is None


class SkippedSavesTestCase(PublishWorkflowTestCase):
    """
    Saves that don't go through the workflow.
    """

    def test_update_fields(self):
        article = self.create_article()
        article.publish_on_save = True
        article.save(update_fields=["publish_on_save"])
        assert article.publish_status == PublishStatus.UNPUBLISHED
        assert self.live_article(article) is None

        # The flag was written unchecked, so the next full save won't publish.
        stored = Article.objects.get(pk=article.pk)
        assert stored.publish_on_save is False
        stored.save()
        assert stored.publish_status == PublishStatus.UNPUBLISHED
        assert self.live_article(stored) is None

    def test_update_fields_without_flags(self):
        article = self.create_article()
        article.title = "Renamed"
        article.publish_on_save = True
        article.save(update_fields=["title"])

        stored = Article.objects.get(pk=article.pk)
        assert stored.title == "Renamed"
        assert stored.publish_status == PublishStatus.UNPUBLISHED
        assert self.live_article(article) is None

    @override_settings(PUBLISH_WORKFLOW={"LIVE_DATABASE": "live", "IS_LIVE_SITE": True})
    def test_live_site(self):
        article = self.create_article()
        article.publish_on_save = True
        article.save()
        assert article.publish_status == PublishStatus.UNPUBLISHED
        assert self.live_article(article) is None


class LiveDatabaseErrorTestCase(PublishWorkflowTestCase):
    """
    Failures talking to the live database abort the save.
    """

    def test_unavailable(self):
        article = self.create_article()
        article.title = "Edited"
        article.publish_on_save = True
        with mock.patch(
            "publish_workflow.api.connect_live_database",
            side_effect=LiveDatabaseUnavailable(),
        ):
            with pytest.raises(LiveDatabaseUnavailable, match=SAVE_ERROR_MESSAGE):
                article.save()

        stored = Article.objects.get(pk=article.pk)
        assert stored.title == "Hello World"
        assert stored.publish_status == PublishStatus.UNPUBLISHED

    def test_write_error(self):
        article = self.create_article()
        article.publish_on_save = True
        with mock.patch("publish_workflow.api.transaction") as mock_transaction:
            mock_transaction.atomic.side_effect = DatabaseError("disk full")
            with self.assertLogs("publish_workflow.api", level="ERROR") as logs:
                with pytest.raises(LiveDatabaseError, match=SAVE_ERROR_MESSAGE) as exc_info:
                    article.save()

        assert isinstance(exc_info.value.__cause__, DatabaseError)
        assert "Error with live database operation" in logs.output[0]
        assert Article.objects.get(pk=article.pk).publish_status == PublishStatus.UNPUBLISHED
        assert self.live_article(article) is None


class DocumentValuesTestCase(PublishWorkflowTestCase):
    """
    Test document_values.
    """

    def test_matches_values_shape(self):
        article = self.create_article()
        values = publish_api.document_values(article)
        assert values == Article.objects.filter(pk=article.pk).values().get()


class FeatureArticleTestCase(PublishWorkflowTestCase):
    """
    A model that inherits its registration from a registered parent.
    """

    def setUp(self) -> None:
        super().setUp()
        self.published = mock.Mock()
        self.rolled_back = mock.Mock()
        document_published.connect(self.published)
        document_rolled_back.connect(self.rolled_back)
        self.addCleanup(document_published.disconnect, self.published)
        self.addCleanup(document_rolled_back.disconnect, self.rolled_back)

    def test_publish_edit_rollback(self):
        feature = FeatureArticle.objects.create(title="Feature", slug="feature", highlight="Big news")
        publish_api.publish(feature)

        self.published.assert_called_once()
        assert self.published.call_args.kwargs["sender"] is FeatureArticle
        assert feature.publish_status == PublishStatus.PUBLISHED
        # Article's path is used.
        assert feature.publish_live_url == "https://www.example.com/news/feature"
        live = FeatureArticle.objects.using("live").get(pk=feature.pk)
        assert live.title == "Feature"
        assert live.highlight == "Big news"
        assert Article.objects.using("live").filter(pk=feature.pk).count() == 1

        feature.title = "Feature (edited)"
        feature.save()
        assert feature.publish_status == PublishStatus.DRAFT
        assert self.published.call_count == 1

        publish_api.rollback(feature)
        self.rolled_back.assert_called_once()
        assert feature.title == "Feature"
        assert feature.publish_status == PublishStatus.PUBLISHED
        assert FeatureArticle.objects.get(pk=feature.pk).title == "Feature"

        feature.highlight = "Bigger news"
        publish_api.publish(feature)
        assert self.published.call_count == 2
        assert FeatureArticle.objects.using("live").get(pk=feature.pk).highlight == "Bigger news"

"""
Django management command to re-sync published documents to the live database.
"""
import logging

from django.apps import apps
from django.core.management import CommandError
from django.core.management.base import BaseCommand

from publish_workflow.api import save_with_same_status
from publish_workflow.exceptions import PublishWorkflowError
from publish_workflow.models import PublishStatus
from publish_workflow.registry import is_publishable_model

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """
    Re-save every published document of a model, pushing it to the live database.

    Useful after a data migration or a bulk edit done outside the admin.
    """
    help = 'Re-publish every published document of a publishable model.'

    def add_arguments(self, parser):
        parser.add_argument('model', type=str, help='The model to republish, as app_label.ModelName')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only report how many documents would be republished.',
        )

    def handle(self, *args, **options):
        model_label = options['model']
        try:
            model_cls = apps.get_model(model_label)
        except (LookupError, ValueError) as exc:
            raise CommandError(f"Unknown model {model_label!r}") from exc

        if not is_publishable_model(model_cls):
            raise CommandError(f"{model_label} is not registered for publishing")

        published = model_cls._default_manager.filter(publish_status=PublishStatus.PUBLISHED)
        if options['dry_run']:
            self.stdout.write(f"{published.count()} published {model_label} documents would be republished")
            return

        count = 0
        for document in published:
            try:
                save_with_same_status(document)
            except PublishWorkflowError as exc:
                logger.exception("Failed to republish %s pk=%s", model_label, document.pk)
                raise CommandError(
                    f"Failed to republish {model_label} pk={document.pk} after {count} documents: {exc}"
                ) from exc
            count += 1

        self.stdout.write(self.style.SUCCESS(f"Republished {count} {model_label} documents"))

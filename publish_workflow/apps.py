"""
publish_workflow Django application initialization.
"""

from django.apps import AppConfig


class PublishWorkflowConfig(AppConfig):
    """
    Configuration for the publish workflow Django application.
    """

    name = "publish_workflow"
    verbose_name = "Publish Workflow"
    default_auto_field = "django.db.models.BigAutoField"
    label = "publish_workflow"

    def ready(self):
        """
        Register system checks and connect the save hook.

        Models are registered by their own apps when their models modules are
        imported, which has already happened by the time we get here.
        """
        # pylint: disable=import-outside-toplevel
        from django.db.models.signals import post_save, pre_save

        from . import checks  # noqa: F401
        from .handlers import finish_first_save_publish, run_publish_workflow

        pre_save.connect(run_publish_workflow, dispatch_uid="publish_workflow.run_publish_workflow")
        post_save.connect(finish_first_save_publish, dispatch_uid="publish_workflow.finish_first_save_publish")

"""
Registry of models that take part in the publish workflow.

A model's mixins give it the workflow fields; registering it tells the save
hook how to treat it (URL path, defaults, whether to track publish dates).
"""
from __future__ import annotations

import logging

from attrs import define, field, validators
from django.core.exceptions import ImproperlyConfigured

from .models import PublishableMixin, PublishDateMixin

log = logging.getLogger(__name__)


@define(frozen=True)
class PublishableOptions:
    """
    Per-model publish workflow options.

    * ``path``: URL path template on the website, e.g. ``/news/:slug``. Models
      without a path get no preview or live URL.
    * ``publish_by_default``: "Publish on save" starts out checked.
    * ``no_unpublish``: hide the "Unpublish on save" option.
    * ``track_publish_date``: record when the document was first published.
      Requires ``PublishDateMixin``.
    """
    path: str | None = field(default=None, validator=validators.optional(validators.instance_of(str)))
    publish_by_default: bool = False
    no_unpublish: bool = False
    track_publish_date: bool = False


class PublishableModelRegistry:
    """
    Tracks registered models and their ``PublishableOptions``.
    """

    _options: dict[type[PublishableMixin], PublishableOptions] = {}

    @classmethod
    def register(cls, model_cls, options: PublishableOptions) -> bool:
        """
        Register ``model_cls`` with ``options``.

        Subclasses of an already registered model are skipped (they use their
        parent's registration) so that one save never runs the hook twice.
        Returns True if the model was newly registered.
        """
        if not issubclass(model_cls, PublishableMixin):
            raise ImproperlyConfigured(
                f"{model_cls} must inherit from PublishableMixin"
            )
        if options.track_publish_date and not issubclass(model_cls, PublishDateMixin):
            raise ImproperlyConfigured(
                f"{model_cls} uses track_publish_date and must inherit from PublishDateMixin"
            )

        parent = cls.get_registered_parent(model_cls)
        if parent is not None:
            log.debug(
                "Not registering %s for publishing: inherits registration from %s",
                model_cls.__name__,
                parent.__name__,
            )
            return False

        cls._options[model_cls] = options
        return True

    @classmethod
    def get_registered_parent(cls, model_cls):
        """
        Return the nearest class in ``model_cls``'s MRO that is registered.
        """
        for klass in model_cls.__mro__:
            if klass in cls._options:
                return klass
        return None

    @classmethod
    def get_options(cls, model_cls) -> PublishableOptions:
        registered = cls.get_registered_parent(model_cls)
        if registered is None:
            raise ImproperlyConfigured(f"{model_cls} is not registered for publishing")
        return cls._options[registered]

    @classmethod
    def is_registered(cls, model_cls) -> bool:
        return cls.get_registered_parent(model_cls) is not None

    @classmethod
    def registered_models(cls) -> list:
        return list(cls._options)


def register_publishable_model(model_cls, options: PublishableOptions | None = None):
    """
    Make ``model_cls`` go through the publish workflow when it's saved.

    Call this from the content app's models module (or use the ``publishable``
    decorator), so that registration has happened before anything is saved.
    """
    PublishableModelRegistry.register(model_cls, options or PublishableOptions())
    return model_cls


def publishable(
    path: str | None = None,
    *,
    publish_by_default: bool = False,
    no_unpublish: bool = False,
    track_publish_date: bool = False,
):
    """
    Class decorator form of ``register_publishable_model``.
    """
    options = PublishableOptions(
        path=path,
        publish_by_default=publish_by_default,
        no_unpublish=no_unpublish,
        track_publish_date=track_publish_date,
    )

    def decorator(model_cls):
        return register_publishable_model(model_cls, options)

    return decorator


def get_publishable_options(model_cls) -> PublishableOptions:
    return PublishableModelRegistry.get_options(model_cls)


def is_publishable_model(model_cls) -> bool:
    return PublishableModelRegistry.is_registered(model_cls)


def get_publishable_models() -> list:
    return PublishableModelRegistry.registered_models()

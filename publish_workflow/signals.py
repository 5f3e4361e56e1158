"""
Publish workflow signals.

All of these are sent by the save hook *after* the live database has been
updated, but *before* the document itself is written to the default database.
If a receiver raises, the save is aborted, while the live database change has
already happened. Keep receivers simple and fast.

The one exception is a brand new document that gets published by its first
save (only possible with ``FORCE_PUBLISH_REGARDLESS_OF_STATUS``): it has no
primary key until it's inserted, so ``document_published`` is sent right after
the insert instead.

Every signal is sent with ``sender`` set to the model class and these
arguments:

    instance: the document being saved
    using: the live database alias
"""
from django.dispatch import Signal

# The document was copied to the live database.
document_published = Signal()

# The document's live copy was removed.
document_unpublished = Signal()

# The document's fields were overwritten with its live copy.
document_rolled_back = Signal()

"""
Exceptions raised by the publish workflow.

Raising any of these from the save hook aborts the save of the document.
"""

# Shown to editors when a save fails because of the live database. The real
# error is logged.
SAVE_ERROR_MESSAGE = "There was an error saving. Please try again."


class PublishWorkflowError(Exception):
    """
    Base class for publish workflow errors.
    """


class LiveDatabaseError(PublishWorkflowError):
    """
    A read or write against the live database failed.
    """

    def __init__(self, message: str = SAVE_ERROR_MESSAGE):
        super().__init__(message)


class LiveDatabaseUnavailable(LiveDatabaseError):
    """
    The connection to the live database could not be established.
    """


class LiveDocumentNotFound(PublishWorkflowError):
    """
    A rollback was requested for a document that has no live copy.
    """

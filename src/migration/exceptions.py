"""
Custom exceptions for the migration engine.

This module defines a hierarchy of exceptions to provide more
precise error handling and debugging across a migration run.
Every failure raised while a migration runs is fatal to that run.
"""


class MigrationBaseError(Exception):
    """
    Base exception for all migration-related errors.

    All custom exceptions in the engine should inherit from this class.
    Provides a common base for catching and handling migration-specific errors.
    """

    pass


class ConfigurationError(MigrationBaseError):
    """
    Raised when there are configuration-related issues.

    This exception is used when:
    - Required configuration parameters are missing
    - Configuration values are invalid
    - A registry cannot be loaded or contains duplicate names
    """

    pass


class LookupFailure(MigrationBaseError):
    """
    Raised when a requested migration name is not registered.

    Surfaced before any part of the migration runs.
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'No migration registered with the name "{name}".')


MigrationNotFoundError = LookupFailure


class TaskFailure(MigrationBaseError):
    """
    Raised when a before or after task cannot complete.

    Aborts the remainder of the run.
    """

    pass


class PullFailure(MigrationBaseError):
    """
    Raised when a puller cannot produce the next batch.

    Covers issues such as:
    - Source unreachable
    - Query or read errors
    - Undecodable source records
    """

    pass


class PushFailure(MigrationBaseError):
    """
    Raised when a pusher cannot write a batch.

    Covers issues such as:
    - Destination unreachable
    - Destination rejecting the data
    - Serialization errors
    """

    pass


WriteFailure = PushFailure


class ContractViolation(MigrationBaseError):
    """
    Raised when a component breaks its interface contract.

    For example a pusher reporting more records written than it was given.
    """

    pass

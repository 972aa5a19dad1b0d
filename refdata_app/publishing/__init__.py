"""
Downstream event publishers.

The production message-bus client is an external collaborator; the
publishers here cover local runs, audits and tests.
"""

from .base import BasePublisher, PublishError, create_publisher
from .file_publisher import FilePublisher
from .stdout_publisher import StdoutPublisher

__all__ = [
    "BasePublisher",
    "FilePublisher",
    "PublishError",
    "StdoutPublisher",
    "create_publisher",
]

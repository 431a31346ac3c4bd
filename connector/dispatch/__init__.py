"""Pending-work dispatch: poll loop, bounded queues and executors."""

from connector.dispatch.checks import CheckDispatcher, format_message
from connector.dispatch.poller import PollLoop
from connector.dispatch.queue import BoundedWorkQueue
from connector.dispatch.submissions import SubmissionDispatcher

__all__ = [
    "BoundedWorkQueue",
    "CheckDispatcher",
    "PollLoop",
    "SubmissionDispatcher",
    "format_message",
]

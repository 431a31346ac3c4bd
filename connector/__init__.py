"""Jarvis connector: bridges Gerrit pending checks and submissions to a Tekton pipeline trigger."""

__version__ = "0.1.0"

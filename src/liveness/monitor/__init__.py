"""Polling loop that waits for a liveness register to become quiescent."""

from .monitor import QuiescenceMonitor

__all__ = ["QuiescenceMonitor"]

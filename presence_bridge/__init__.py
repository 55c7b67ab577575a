"""Presence Bridge - sustained object presence recording and live viewer."""

__version__ = "1.0.0"

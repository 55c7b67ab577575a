"""Code shared by the worker and web services."""

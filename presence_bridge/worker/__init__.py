"""Worker service: capture, inference and episode recording."""

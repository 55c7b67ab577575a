"""Web service: live viewer and detections API."""

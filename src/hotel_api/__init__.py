"""REST API over the hotel reservation engine."""

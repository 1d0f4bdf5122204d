"""Domain notification dispatch pipeline for the property management dashboard."""

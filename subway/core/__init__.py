"""Core infrastructure: configuration, database, logging, telemetry."""

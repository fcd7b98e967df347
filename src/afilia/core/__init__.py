"""Core services: errors, configuration, logging, locking and the catalog database."""

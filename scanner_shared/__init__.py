"""Shared configuration, database access and logging for the barcode scanner."""

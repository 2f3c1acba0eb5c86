"""Report ingestion: format detection and per-marketplace adapters."""

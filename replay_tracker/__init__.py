"""Match ingestion and replay decoding service for Riot accounts."""

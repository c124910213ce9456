"""Data models for Test Collab payloads and run outcomes."""

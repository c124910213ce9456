"""Helpers for building Test Collab payloads and models in tests."""

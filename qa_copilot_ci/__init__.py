"""CI helper that runs QA Copilot test plans on Test Collab."""

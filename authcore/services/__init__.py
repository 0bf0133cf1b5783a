"""Account, credential and validation services."""

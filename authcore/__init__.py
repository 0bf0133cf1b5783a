"""Credential and token lifecycle service: registration, login, signed tokens."""

"""Transient, self-expiring user notifications."""

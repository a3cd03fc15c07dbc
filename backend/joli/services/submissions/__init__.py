"""Submission domain services: payload validation, intake and moderation."""

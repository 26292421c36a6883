"""Integrations module - External service connectors."""

from src.integrations.twilio import TwilioService, twilio_service

__all__ = [
    "TwilioService",
    "twilio_service",
]

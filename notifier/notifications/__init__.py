"""Recipient resolution, fan-out dispatch and scheduling of push notifications."""

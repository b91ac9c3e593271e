from __future__ import annotations


class RelayError(Exception):
    """Base class for failures while relaying a chat turn to the model."""


class ClientInputError(RelayError):
    """The caller sent a request we cannot forward (e.g. no message)."""


class UpstreamCallError(RelayError):
    """The Gemini call itself failed (network, quota, provider error)."""


class MalformedModelOutput(RelayError, ValueError):
    """No JSON object could be recovered from the model's reply text."""

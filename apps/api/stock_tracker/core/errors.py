"""Error taxonomy for the alert pipeline.

Cycle-level errors (``FetchError``, ``StoreError``) abort the current cycle.
Per-alert errors (``EvaluationError``, ``DeliveryError``) only affect the alert
being processed.
"""

from __future__ import annotations


class AlertPipelineError(Exception):
    """Base class for expected pipeline failures."""


class FetchError(AlertPipelineError):
    """Upstream quote call failed, timed out or returned an unusable payload."""


class StoreError(AlertPipelineError):
    """The alert store could not be read or written."""


class EvaluationError(AlertPipelineError):
    """An alert could not be evaluated, e.g. unknown condition or bad threshold."""


class DeliveryError(AlertPipelineError):
    """A notification email could not be delivered."""

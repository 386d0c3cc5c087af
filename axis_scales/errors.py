from __future__ import annotations


class ScaleError(Exception):
    """Base class for scale resolution failures."""


class ScaleConfigError(ScaleError, ValueError):
    """Scale configuration is invalid; raised eagerly and fatal for that scale."""


class ScaleDataError(ScaleError, ValueError):
    """Input values cannot be used to train or map a scale."""

from __future__ import annotations


class ExportInputError(ValueError):
    """Caller input rejected before rendering; `field` names the culprit."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class RenderError(RuntimeError):
    pass

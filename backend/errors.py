class StoreError(Exception):
    """Persistence layer failure. Always surfaced to the caller as a 500."""


class ModelCallError(Exception):
    """The Gemini completion call failed before returning any text."""


class SummaryGenerationError(Exception):
    """The final summary could not be produced because the model call failed."""

class FieldConfigError(ValueError):
    """Rejected field-configuration write (duplicate name/category, unknown id)."""

    def __init__(self, message: str, not_found: bool = False):
        super().__init__(message)
        self.not_found = not_found


class CapabilityError(RuntimeError):
    """The language-model capability failed, timed out or returned nothing usable."""


class EnhancementError(RuntimeError):
    """Content generation for a field failed. The field stays retryable."""

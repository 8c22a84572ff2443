class InvalidInputError(ValueError):
    """Raised when an input cannot be computed on (λ ≤ 0, negative thickness, ...)."""

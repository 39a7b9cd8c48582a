"""
Reusable validators for simplexint Pydantic models.

Exports:
    - asdict: Model-to-dict converter (Pydantic v1/v2).
    - positive_value: Field validator (value must be strictly positive).
    - log_level_name: Field validator (value must be a Loguru level name).
"""

__all__ = [
    "asdict",
    "positive_value",
    "log_level_name",
]

_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def asdict(model):
    """
    Return the dictionary representation of a Pydantic model,
    compatible with both Pydantic v1 and v2.

    Args:
        model (BaseModel): The Pydantic model instance.

    Returns:
        dict: Dictionary representation of the model.
    """
    return model.model_dump() if hasattr(model, "model_dump") else model.dict()


def positive_value(cls, v):
    """
    Ensure a field's value is strictly positive.

    Args:
        cls: The model class (required by Pydantic validator signature).
        v: The value to validate.

    Returns:
        The validated value.

    Raises:
        ValueError: If the value is not greater than zero.
    """
    if v is None or not v > 0:
        raise ValueError("Value must be strictly positive")
    return v


def log_level_name(cls, v):
    """Normalize a level name to upper case and reject unknown levels."""
    name = str(v).upper()
    if name not in _LEVELS:
        raise ValueError(f"Unknown log level {v!r}; expected one of {_LEVELS}")
    return name

from enum import Enum
from datetime import datetime, date, time
from sqlalchemy.inspection import inspect

def to_dict(model_instance, exclude=()):
    """Column values of a model instance as JSON-ready primitives."""
    output = {}
    mapper = inspect(model_instance.__class__)

    for column in mapper.columns:
        key = column.key
        if key in exclude:
            continue
        value = getattr(model_instance, key)

        if isinstance(value, Enum):
            output[key] = value.value
        elif isinstance(value, (datetime, date)):
            output[key] = value.isoformat()
        elif isinstance(value, time):
            output[key] = value.strftime("%H:%M")
        else:
            output[key] = value

    return output

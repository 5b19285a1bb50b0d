"""Field types a registration form can collect"""

from enum import Enum


class FieldType(str, Enum):
    """Enum for form field types"""

    TEXT = "text"
    EMAIL = "email"
    NUMBER = "number"
    SELECT = "select"
    CHECKBOX = "checkbox"

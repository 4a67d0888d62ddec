from enum import Enum


class Gender(str, Enum):
    """Flatmate gender preference of a housing share."""

    MALE = "male"
    FEMALE = "female"
    ANY = "any"

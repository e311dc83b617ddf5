"""Database model type definitions."""

from src.models.like import Like
from src.models.match import Match
from src.models.message import Message
from src.models.profile import Gender, LookingFor, Profile

__all__ = [
    "Profile",
    "Gender",
    "LookingFor",
    "Like",
    "Match",
    "Message",
]

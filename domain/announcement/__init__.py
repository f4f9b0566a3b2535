"""Announcement domain exports."""
from .entity import Announcement
from .repository import AnnouncementRepository

__all__ = ["Announcement", "AnnouncementRepository"]

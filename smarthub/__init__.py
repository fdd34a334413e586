"""SmartHub university portal core: account directory and event calendar."""

from smarthub.directory import Directory
from smarthub.events import EventCalendar
from smarthub.model import Account, Event, EventPatch, ProfilePatch, Role

__all__ = ["Account", "Directory", "Event", "EventCalendar", "EventPatch", "ProfilePatch", "Role"]

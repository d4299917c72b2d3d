"""Interfaces of the external tools prflow drives."""

from prflow.ports.hosting import HostingClient
from prflow.ports.interaction import Browser, Editor, Selector
from prflow.ports.vcs import VersionControl

__all__ = ["Browser", "Editor", "HostingClient", "Selector", "VersionControl"]

"""Upstream API clients."""

from clients.faceit import FaceitClient, MissingCredentialsError, is_player_id
from clients.http import ResilientFetchClient

__all__ = ["FaceitClient", "MissingCredentialsError", "ResilientFetchClient", "is_player_id"]

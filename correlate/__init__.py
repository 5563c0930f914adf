"""
Correlate package: identity resolution and approximate name matching across systems.
"""

from .identity import IdentityResolver, build_identity_map
from .matching import correlate_team_members, find_closest_name

__all__ = ["IdentityResolver", "build_identity_map", "correlate_team_members", "find_closest_name"]

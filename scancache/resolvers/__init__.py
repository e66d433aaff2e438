"""Concrete resolvers for server-provisioned artifacts."""

from scancache.resolvers.engine import EngineResolver
from scancache.resolvers.jre import JreResolver

__all__ = ["EngineResolver", "JreResolver"]

"""AWS session management for aws-bulk."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import boto3
import structlog
from botocore.exceptions import ProfileNotFound

from aws_bulk.config import get_config
from aws_bulk.core.exceptions import AuthenticationError

logger = structlog.get_logger()


@dataclass
class SessionManager:
    """Manages the boto3 session and hands out service clients."""

    active_profile: str | None = field(default_factory=lambda: get_config().default_profile)
    active_region: str = field(default_factory=lambda: get_config().default_region)
    _session: boto3.Session | None = field(default=None, repr=False)

    def list_profiles(self) -> list[str]:
        """List all available AWS profiles."""
        try:
            profiles = boto3.Session().available_profiles
        except Exception as e:
            logger.error("failed_to_list_profiles", error=str(e))
            return []
        return sorted(profiles)

    def get_session(self) -> boto3.Session:
        """Get the current boto3 session, creating it on first use."""
        if self._session is None:
            try:
                self._session = boto3.Session(
                    profile_name=self.active_profile,
                    region_name=self.active_region,
                )
            except ProfileNotFound:
                available = self.list_profiles()
                raise AuthenticationError(
                    f"Profile '{self.active_profile}' not found",
                    profile=self.active_profile,
                    suggestion=f"Available profiles: {', '.join(available[:5])}{'...' if len(available) > 5 else ''}",
                )
            logger.debug(
                "session_created",
                profile=self.active_profile,
                region=self.active_region,
            )
        return self._session

    def get_client(self, service: str, region: str | None = None) -> Any:
        """Get a boto3 client for a service."""
        session = self.get_session()
        return session.client(service, region_name=region or self.active_region)

    def configure(self, profile: str | None = None, region: str | None = None) -> None:
        """Switch profile and/or region, dropping the cached session."""
        if profile is not None:
            self.active_profile = profile
        if region is not None:
            self.active_region = region
        self._session = None
        logger.info("session_configured", profile=self.active_profile, region=self.active_region)

    def to_dict(self) -> dict[str, Any]:
        """Convert session state to dictionary."""
        return {
            "active_profile": self.active_profile,
            "active_region": self.active_region,
        }


# Global session manager instance
_session_manager: SessionManager | None = None


def get_session_manager() -> SessionManager:
    """Get the global session manager instance."""
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager


def reset_session_manager() -> None:
    """Reset the global session manager (for testing)."""
    global _session_manager
    _session_manager = None

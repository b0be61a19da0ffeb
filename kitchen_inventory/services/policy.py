"""Oversell policy resolution backed by the Redis settings store."""

from kitchen_inventory.config import Settings, get_settings
from kitchen_inventory.models.inventory import OversellPolicy
from kitchen_inventory.state.manager import StateManager
from kitchen_inventory.utils.logging import get_logger

logger = get_logger(__name__)

OVERSELL_POLICY_KEY = "inventory:oversell_policy"
OVERSELL_POLICY_DEFAULT_KEY = "inventory:oversell_policy:default"


def parse_policy(value: object) -> OversellPolicy | None:
    """Parse a stored value, returning None if it is not a valid policy."""
    if isinstance(value, OversellPolicy):
        return value
    if not isinstance(value, str):
        return None
    try:
        return OversellPolicy(value)
    except ValueError:
        return None


class OversellPolicyStore:
    """
    Two-tier oversell policy override.

    Lookup order: the user preference, then the technical default, then the
    system default from settings.
    """

    def __init__(self, state_manager: StateManager, settings: Settings | None = None):
        self.state_manager = state_manager
        self.settings = settings or get_settings()

    @property
    def system_default(self) -> OversellPolicy:
        """Policy used when nothing is stored."""
        return OversellPolicy(self.settings.oversell_policy_default)

    async def _read(self, key: str) -> OversellPolicy | None:
        try:
            value = await self.state_manager.get(key)
        except Exception as e:
            logger.error("oversell_policy_read_failed", key=key, error=str(e))
            return None

        policy = parse_policy(value)
        if value is not None and policy is None:
            logger.warning("oversell_policy_invalid", key=key, value=str(value))
        return policy

    async def get_policy(self) -> OversellPolicy:
        """Get the effective oversell policy."""
        for key in (OVERSELL_POLICY_KEY, OVERSELL_POLICY_DEFAULT_KEY):
            policy = await self._read(key)
            if policy is not None:
                return policy
        return self.system_default

    async def set_policy(self, policy: OversellPolicy | str) -> None:
        """Set the user's oversell policy preference."""
        policy = OversellPolicy(policy)
        await self.state_manager.set(OVERSELL_POLICY_KEY, policy.value)
        logger.info("oversell_policy_set", policy=policy.value)

    async def get_default(self) -> OversellPolicy:
        """Get the technical default oversell policy."""
        policy = await self._read(OVERSELL_POLICY_DEFAULT_KEY)
        return policy if policy is not None else self.system_default

    async def set_default(self, policy: OversellPolicy | str) -> None:
        """Set the technical default oversell policy."""
        policy = OversellPolicy(policy)
        await self.state_manager.set(OVERSELL_POLICY_DEFAULT_KEY, policy.value)
        logger.info("oversell_policy_default_set", policy=policy.value)

    async def reset_to_default(self) -> None:
        """Drop the user preference so the technical default applies."""
        await self.state_manager.delete(OVERSELL_POLICY_KEY)
        logger.info("oversell_policy_reset")

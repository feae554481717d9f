import logging
import os

from src.rules.models import Rules

logger = logging.getLogger(__name__)


def validate_ops_rules(rules: Rules) -> None:
    """
    Validate operational requirements before startup.
    Raises ValueError listing any missing environment variables.
    """
    missing = [env_var for env_var in rules.ops.required_env if env_var not in os.environ]
    if missing:
        raise ValueError(f"Missing required environment variables: {', '.join(missing)}")

    if rules.telemetry.store == "memory":
        logger.warning("Telemetry store is in-memory; events will not survive a restart")

    logger.info("Configuration validated (store=%s)", rules.telemetry.store)

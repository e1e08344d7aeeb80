"""
Notification dispatcher - delivers planned messages to their recipients.
"""

import logging

from breakroom.notifications.channels.discord import send_discord_dm
from breakroom.notifications.plans import Outbound

logger = logging.getLogger(__name__)


async def dispatch(outbounds: list[Outbound]) -> dict:
    """
    Send every outbound message as a Discord DM.

    A failed delivery is logged and counted; it never stops the remaining
    deliveries and never reaches the caller as an exception.

    Returns:
        Dict with delivery counts: {"sent": int, "failed": int}
    """
    sent = 0
    failed = 0

    for outbound in outbounds:
        try:
            ok = await send_discord_dm(
                outbound.recipient_id, outbound.body, outbound.actions
            )
        except Exception as e:
            logger.warning(
                f"Error delivering {outbound.message_type} to {outbound.recipient_id}: {e}"
            )
            ok = False

        if ok:
            sent += 1
        else:
            failed += 1
            logger.warning(
                f"Failed to deliver {outbound.message_type} to {outbound.recipient_id}"
            )

    if outbounds:
        logger.info(f"Dispatched {len(outbounds)} message(s): {sent} sent, {failed} failed")

    return {"sent": sent, "failed": failed}

"""
Notification Service — SMS delivery.
Stands in for a provider such as Africa's Talking or Twilio; delivery is logged.
"""
import logging
import time
from typing import Dict, Any

logger = logging.getLogger(__name__)


class NotificationService:
    @staticmethod
    def send_sms(phone: str, message: str) -> Dict[str, Any]:
        """
        Simulates sending an SMS via a gateway. Message bodies are not logged
        because they may carry one-time codes.
        """
        logger.info("[SMS] Sending %d chars to ***%s", len(message), phone[-3:])
        return {
            "success": True,
            "provider": "MockSMSGateway",
            "sid": f"SM{int(time.time())}Y",
            "status": "sent",
        }

"""
Delivery channels.

Every channel wraps one AWS transport behind send(recipient, payload) and
either returns a SendReceipt or raises ChannelUnavailableError. Channels never
depend on each other, so the fan-out engine can call them concurrently.
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Optional
import logging

from botocore.exceptions import BotoCoreError, ClientError

from app.core.exceptions import ChannelUnavailableError

logger = logging.getLogger(__name__)

@dataclass
class SendReceipt:
    delivered: bool
    provider_message_id: Optional[str] = None

class Channel(ABC):
    name: str = "channel"

    @abstractmethod
    def send(self, recipient: str, payload: Any) -> SendReceipt:
        """Deliver payload to recipient or raise ChannelUnavailableError"""

@contextmanager
def provider_errors(channel: str, action: str):
    """Translate boto3 failures into ChannelUnavailableError"""
    try:
        yield
    except (ClientError, BotoCoreError) as e:
        logger.error(f"{channel}: error while {action}: {e}")
        raise ChannelUnavailableError(f"{channel} unavailable: {e}", channel=channel) from e

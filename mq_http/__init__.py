"""
mq_http - A client for the MQ HTTP API

This package provides a signed HTTP client plus producer and consumer handles
for publishing, consuming and acknowledging messages on a hosted MQ topic.
"""

from .core import (mq_client, MQClient, MQProducer, MQConsumer, MQError, MQConfigurationError,
                   MQServiceError)
from .models import AckError, AckResult, AckStatus, MessageProperties, MessageRecord, MQResponse, PublishResult

__version__ = "0.1.0"
__author__ = ""
__email__ = ""
__description__ = "A client for the MQ HTTP API"

__all__ = [
    "mq_client", "MQClient", "MQProducer", "MQConsumer", "MQError", "MQConfigurationError", "MQServiceError",
    "AckError", "AckResult", "AckStatus", "MessageProperties", "MessageRecord", "MQResponse", "PublishResult",
]

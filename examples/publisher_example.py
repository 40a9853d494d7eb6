#!/usr/bin/env python3
"""
Example publisher script demonstrating how to use mq_http package
"""

import os
import time
from mq_http import mq_client, MQServiceError


def main():
    endpoint = os.environ.get("MQ_ENDPOINT", "http://localhost:8080")
    access_key_id = os.environ.get("MQ_ACCESS_KEY_ID", "test-id")
    access_key_secret = os.environ.get("MQ_ACCESS_KEY_SECRET", "test-secret")
    instance_id = os.environ.get("MQ_INSTANCE_ID")
    topic = os.environ.get("MQ_TOPIC", "task_topic")
    with mq_client(
        endpoint=endpoint,
        access_key_id=access_key_id,
        access_key_secret=access_key_secret,
    ) as client:
        producer = client.get_producer(instance_id, topic)
        print(f"✅ Producer initialized for topic '{topic}'")
        for i in range(10):
            print(f"📤 Sending: {i}")
            try:
                response = producer.publish_message(f"Message #{i+1}", tag="example")
                print(f"✅ Published {response.body['MessageId']}")
            except MQServiceError as e:
                print(f"❌ Failed to send message #{i+1}: {e.code} {e.message}")
            time.sleep(0.5)
        print("✅ Finished sending messages")


if __name__ == "__main__":
    main()

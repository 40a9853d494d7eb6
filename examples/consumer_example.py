#!/usr/bin/env python3
"""
Example consumer script demonstrating how to use mq_http package
"""

import os
from mq_http import mq_client


def main():
    """Continuously consume and acknowledge messages with long polling"""
    endpoint = os.environ.get("MQ_ENDPOINT", "http://localhost:8080")
    access_key_id = os.environ.get("MQ_ACCESS_KEY_ID", "test-id")
    access_key_secret = os.environ.get("MQ_ACCESS_KEY_SECRET", "test-secret")
    instance_id = os.environ.get("MQ_INSTANCE_ID")
    topic = os.environ.get("MQ_TOPIC", "task_topic")
    consumer_name = os.environ.get("MQ_CONSUMER", "task_consumer")
    print("🔄 Starting continuous consumer...")
    try:
        with mq_client(
            endpoint=endpoint,
            access_key_id=access_key_id,
            access_key_secret=access_key_secret,
        ) as client:
            consumer = client.get_consumer(instance_id, topic, consumer_name)
            print(f"✅ Topic '{topic}' ready for consumption as '{consumer_name}'")
            while True:
                messages = consumer.consume(3, wait_seconds=3)
                for message in messages:
                    print(f"📥 Received: {message.message_body}")
                if messages:
                    result = consumer.ack([m.receipt_handle for m in messages])
                    if not result.ok:
                        print(f"⚠️ Ack {result.status.value}: {result.errors or result.fault}")
    except KeyboardInterrupt:
        print("\n✅ Consumer shutdown complete")
    except Exception as e:
        print(f"❌ Consumer error: {e}")


if __name__ == "__main__":
    main()

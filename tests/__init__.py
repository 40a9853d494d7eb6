"""
Test package for mq_http

This package contains tests for the mq_http library including:
- Unit tests for request signing and header building
- Unit tests for XML encoding and response parsing
- Tests for MQClient, MQProducer and MQConsumer against a mocked transport
- Integration and example script tests

Run all tests with: python -m pytest tests/ -v
Run with coverage: python -m pytest tests/ --cov=mq_http --cov-report=html
"""

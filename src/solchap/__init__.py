"""
Sol-Chap marketplace backend.

This package contains the serverless marketplace implementation following a
three-layer architecture:

- handlers: API Gateway / SQS entry points, one Lambda per domain
- logic: domain services built on the shared encrypted write and read paths
- dal: DynamoDB record store
- crypto: deterministic field encryption and the gateway that invokes it
- events: SQS and EventBridge notification fan-out
- models: request models and the generic record shape
"""

__version__ = "1.0.0"
__description__ = "Serverless marketplace backend with field-level encryption"

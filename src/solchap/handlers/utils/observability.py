"""
Shared observability objects for every Sol-Chap Lambda.

Service name comes from the POWERTOOLS_SERVICE_NAME environment variable so each
function deployed from this package logs and traces under its own name.
"""

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import Metrics
from aws_lambda_powertools.tracing import Tracer

METRICS_NAMESPACE = 'SolChapMarketplace'

# JSON output format
logger: Logger = Logger()

# Disabled by setting POWERTOOLS_TRACE_DISABLED to "true"
tracer: Tracer = Tracer()

metrics = Metrics(namespace=METRICS_NAMESPACE)

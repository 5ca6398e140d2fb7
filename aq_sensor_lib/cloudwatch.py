"""Amazon CloudWatch implementation of the metrics client."""

import logging
from typing import Any, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from aq_sensor_lib.errors import SubmissionError
from aq_sensor_lib.models import MetricDatum

logger = logging.getLogger(__name__)


class CloudWatchMetricsClient:
    """Submits metric batches with ``PutMetricData``.

    Credentials and region come from the default AWS configuration chain.
    Retries are left to botocore; a failed call is reported once as
    SubmissionError.
    """

    def __init__(self, client: Optional[Any] = None) -> None:
        """Initialize with an existing boto3 CloudWatch client or create one.

        Raises:
            SubmissionError: If a default client cannot be created
        """
        if client is None:
            import boto3

            try:
                client = boto3.client("cloudwatch")
            except (BotoCoreError, ClientError) as e:
                raise SubmissionError(f"failed creating CloudWatch client: {e}") from e
            logger.info("Created CloudWatch client")
        self._client = client

    def submit(self, namespace: str, data: Sequence[MetricDatum]) -> None:
        """Submit one batch of data points under ``namespace``.

        Raises:
            SubmissionError: If the call fails
        """
        if not data:
            return

        try:
            self._client.put_metric_data(
                Namespace=namespace,
                MetricData=[datum.to_cloudwatch() for datum in data],
            )
        except (BotoCoreError, ClientError) as e:
            raise SubmissionError(
                f"error submitting metric data to cloudwatch: {e}"
            ) from e

        logger.debug(f"Submitted {len(data)} data points to namespace {namespace}")

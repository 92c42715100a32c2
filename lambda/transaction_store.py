import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import boto3

from settings import TransactionStoreSettings


class TransactionStore:
    """Writes received transactions to a relational table through the RDS Data API."""

    def __init__(self, settings: TransactionStoreSettings, client=None):
        self.settings = settings
        self.client = client or boto3.client("rds-data")

    def insert(self, payload: Any, received_at: Optional[datetime] = None) -> Dict[str, Any]:
        received_at = received_at or datetime.now(timezone.utc)
        sql = f"INSERT INTO {self.settings.table} (received_at, payload) VALUES (:received_at, :payload)"
        return self.client.execute_statement(
            resourceArn=self.settings.cluster_arn,
            secretArn=self.settings.secret_arn,
            database=self.settings.database,
            sql=sql,
            parameters=[
                {
                    "name": "received_at",
                    "value": {"stringValue": received_at.strftime("%Y-%m-%d %H:%M:%S")},
                    "typeHint": "TIMESTAMP",
                },
                {"name": "payload", "value": {"stringValue": json.dumps(payload)}},
            ],
        )

import logging
from datetime import datetime

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from sharing.record import ShareRecord
from sharing.record_store import RecordStore, error_code, store_errors
from storage.aws import client_kwargs

logger = logging.getLogger(__name__)

_CONDITION_FAILED = "ConditionalCheckFailedException"
_TTL_ATTRIBUTE = "expires_at_epoch"


class DynamoRecordStore(RecordStore):
    """
    Stores one item per share code in a DynamoDB table keyed on "code".

    Uniqueness is enforced with conditional writes: a create only succeeds if no
    item holds the code, or the item there has already expired. The table's
    TTL attribute (expires_at_epoch) lets DynamoDB purge dead items on its own.
    """

    def __init__(self, config: dict):
        resource = boto3.resource("dynamodb", **client_kwargs(config))
        self._table = resource.Table(config["table_name"])

    # ------------------------------------------------------------------
    # RecordStore interface
    # ------------------------------------------------------------------

    def create_if_absent(self, record: ShareRecord) -> bool:
        condition = Attr("code").not_exists() | Attr(_TTL_ATTRIBUTE).lt(
            int(record.created_at.timestamp())
        )
        with store_errors("DynamoDB", "create", record.code):
            try:
                self._table.put_item(Item=record.to_item(), ConditionExpression=condition)
            except ClientError as e:
                if error_code(e) == _CONDITION_FAILED:
                    return False
                raise
        return True

    def get(self, code: str) -> ShareRecord | None:
        with store_errors("DynamoDB", "read", code):
            response = self._table.get_item(Key={"code": code}, ConsistentRead=True)
        item = response.get("Item")
        return ShareRecord.from_item(item) if item else None

    def set(self, code: str, fields: dict, merge: bool = True, expected: dict | None = None) -> bool:
        with store_errors("DynamoDB", "update", code):
            if not merge:
                self._table.put_item(Item={**fields, "code": code})
                return True
            names = {"#code": "code"}
            values = {}
            assignments = []
            for i, (name, value) in enumerate(fields.items()):
                names[f"#f{i}"] = name
                values[f":f{i}"] = value
                assignments.append(f"#f{i} = :f{i}")
            conditions = ["attribute_exists(#code)"]
            for i, (name, value) in enumerate((expected or {}).items()):
                names[f"#e{i}"] = name
                values[f":e{i}"] = value
                conditions.append(f"#e{i} = :e{i}")
            try:
                self._table.update_item(
                    Key={"code": code},
                    UpdateExpression="SET " + ", ".join(assignments),
                    ConditionExpression=" AND ".join(conditions),
                    ExpressionAttributeNames=names,
                    ExpressionAttributeValues=values,
                )
            except ClientError as e:
                if error_code(e) == _CONDITION_FAILED:
                    return False
                raise
        return True

    def delete(self, code: str) -> None:
        with store_errors("DynamoDB", "delete", code):
            self._table.delete_item(Key={"code": code})

    def delete_if_expired(self, code: str, now: datetime) -> bool:
        # Whole seconds only, so the item must have expired before now's second began
        condition = Attr(_TTL_ATTRIBUTE).lt(int(now.timestamp()))
        with store_errors("DynamoDB", "delete", code):
            try:
                self._table.delete_item(Key={"code": code}, ConditionExpression=condition)
            except ClientError as e:
                if error_code(e) == _CONDITION_FAILED:
                    return False
                raise
        return True

    def ensure_ready(self) -> None:
        client = self._table.meta.client
        name = self._table.name
        try:
            client.describe_table(TableName=name)
            return
        except ClientError as e:
            if error_code(e) != "ResourceNotFoundException":
                raise

        logger.warning("Table %s not found. Creating it...", name)
        client.create_table(
            TableName=name,
            KeySchema=[{"AttributeName": "code", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "code", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        client.get_waiter("table_exists").wait(TableName=name)
        client.update_time_to_live(
            TableName=name,
            TimeToLiveSpecification={"Enabled": True, "AttributeName": _TTL_ATTRIBUTE},
        )
        logger.info("Table %s created with TTL on %s", name, _TTL_ATTRIBUTE)

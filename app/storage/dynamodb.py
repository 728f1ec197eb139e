import boto3
from typing import Optional, Dict, Any
from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError
from app.settings import StorageConfig
import logging

log = logging.getLogger(__name__)

EMAIL_INDEX = "EmailIndex"
# Marker items that reserve an email; they carry no email attribute so EmailIndex skips them
EMAIL_MARKER_PREFIX = "email#"

_serializer = TypeSerializer()

def email_marker_id(email: str) -> str:
    return f"{EMAIL_MARKER_PREFIX}{email}"

# -------------------------
# DynamoDB user table
# -------------------------
class UserRepository:
    def __init__(self, config: StorageConfig, table_name: str):
        self.table_name = table_name
        session = boto3.session.Session(region_name=config.region)
        kwargs = {
            "aws_access_key_id": config.access_key_id,
            "aws_secret_access_key": config.secret_access_key,
        }
        if config.endpoint_url:
            kwargs["endpoint_url"] = config.endpoint_url

        self.resource = session.resource("dynamodb", **kwargs)
        log.info("Initialized DynamoDB resource")

        # Ensure table exists at initialization
        self.ensure_table()

    # Refer here: https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/dynamodb/client/create_table.html
    def ensure_table(self):
        try:
            table = self.resource.Table(self.table_name)
            table.load()
        except ClientError:
            table = self.resource.create_table(
                TableName=self.table_name,
                KeySchema=[{"AttributeName": "user_id", "KeyType": "HASH"}],
                AttributeDefinitions=[
                    {"AttributeName": "user_id", "AttributeType": "S"},
                    {"AttributeName": "email", "AttributeType": "S"},
                ],
                GlobalSecondaryIndexes=[
                    {
                        "IndexName": EMAIL_INDEX,
                        "KeySchema": [{"AttributeName": "email", "KeyType": "HASH"}],
                        "Projection": {"ProjectionType": "ALL"},
                        "ProvisionedThroughput": {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5},
                    }
                ],
                ProvisionedThroughput={"ReadCapacityUnits": 5, "WriteCapacityUnits": 5},
            )
            table.wait_until_exists()
            log.info("Created table %s", self.table_name)

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        if user_id.startswith(EMAIL_MARKER_PREFIX):
            return None
        table = self.resource.Table(self.table_name)
        resp = table.get_item(Key={"user_id": user_id})
        return resp.get("Item")

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        table = self.resource.Table(self.table_name)
        resp = table.query(
            IndexName=EMAIL_INDEX,
            KeyConditionExpression=Key("email").eq(email),
            Limit=1,
        )
        items = resp.get("Items", [])
        return items[0] if items else None

    def create_user(self, item: Dict[str, Any]):
        """
            Writes the user and its email marker in one transaction.

            Raises a ClientError with code TransactionCanceledException when
            the email (or the user_id) is already taken.
        """
        marker = {"user_id": email_marker_id(item["email"]), "owner_id": item["user_id"]}
        self.resource.meta.client.transact_write_items(
            TransactItems=[
                {
                    "Put": {
                        "TableName": self.table_name,
                        "Item": {k: _serializer.serialize(v) for k, v in item.items()},
                        "ConditionExpression": "attribute_not_exists(user_id)",
                    }
                },
                {
                    "Put": {
                        "TableName": self.table_name,
                        "Item": {k: _serializer.serialize(v) for k, v in marker.items()},
                        "ConditionExpression": "attribute_not_exists(user_id)",
                    }
                },
            ]
        )
        log.debug("Inserted user %s", item.get("user_id"))

    def close(self):
        log.info("Closed DynamoDB resource")

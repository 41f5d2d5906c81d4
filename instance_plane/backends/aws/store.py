"""DynamoDB-backed record store."""

from __future__ import annotations

import boto3


class DynamoDBRecordStore:
    def __init__(
        self,
        records_table: str,
        endpoint_url: str | None = None,
        region_name: str | None = None,
    ):
        kwargs = {}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        if region_name:
            kwargs["region_name"] = region_name
        dynamodb = boto3.resource("dynamodb", **kwargs)
        self._records = dynamodb.Table(records_table)

    def get_record(self, resource_key: str) -> dict | None:
        resp = self._records.get_item(Key={"resource_key": resource_key}, ConsistentRead=True)
        return resp.get("Item")

    def list_records(self) -> list[dict]:
        resp = self._records.scan()
        items = resp.get("Items", [])
        while "LastEvaluatedKey" in resp:
            resp = self._records.scan(ExclusiveStartKey=resp["LastEvaluatedKey"])
            items.extend(resp.get("Items", []))
        return items

    def put_record(self, record: dict) -> None:
        self._records.put_item(Item=record)

    def delete_record(self, resource_key: str) -> None:
        self._records.delete_item(Key={"resource_key": resource_key})

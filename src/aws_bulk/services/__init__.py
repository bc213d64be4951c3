"""AWS service wrappers used by bulk operations."""

from aws_bulk.services.base import BaseAWSService
from aws_bulk.services.dynamodb import DynamoDBService, to_attribute_map
from aws_bulk.services.sqs import SQSService

__all__ = [
    "BaseAWSService",
    "DynamoDBService",
    "SQSService",
    "to_attribute_map",
]

"""
Environment variable models for type-safe configuration.

Each Lambda reads one of these models once per cold start through
``get_environment_variables`` and passes it to its service constructor, so
business logic never reads ``os.environ`` itself.
"""

from typing import Annotated, Optional

from aws_lambda_env_modeler import get_environment_variables
from pydantic import BaseModel, Field


class ServiceEnvVars(BaseModel):
    """Settings every data handler needs."""

    TABLE_NAME: Annotated[str, Field(
        description='DynamoDB table the handler writes to',
        min_length=1
    )]

    QUEUE_URL: Annotated[Optional[str], Field(
        default=None,
        description='SQS queue receiving one message per mutation'
    )] = None

    EVENT_BUS_NAME: Annotated[str, Field(
        default='Dev-MarketplaceEventBus',
        description='EventBridge bus receiving one event per mutation'
    )] = 'Dev-MarketplaceEventBus'

    ENCRYPTION_FUNCTION_NAME: Annotated[str, Field(
        default='Dev-EncryptionFunction',
        description='Lambda function that encrypts sensitive fields',
        min_length=1
    )] = 'Dev-EncryptionFunction'

    DECRYPTION_FUNCTION_NAME: Annotated[str, Field(
        default='Dev-DecryptionFunction',
        description='Lambda function that decrypts sensitive fields',
        min_length=1
    )] = 'Dev-DecryptionFunction'

    AWS_REGION: Annotated[str, Field(
        default='us-east-1',
        description='AWS region for service deployment'
    )] = 'us-east-1'

    DYNAMODB_ENDPOINT: Annotated[Optional[str], Field(
        default=None,
        description='Override DynamoDB endpoint, for local testing'
    )] = None


class CardsEnvVars(ServiceEnvVars):
    CARD_SCHEMAS_TABLE_NAME: Annotated[str, Field(
        default='Dev-CardSchemas',
        description='Table holding imported card schemas'
    )] = 'Dev-CardSchemas'


class MarketplacesEnvVars(ServiceEnvVars):
    STATUS_INDEX_NAME: Annotated[str, Field(
        default='Dev-StatusIndex',
        description='GSI over GSI1PK/GSI1SK listing marketplaces by status'
    )] = 'Dev-StatusIndex'


class CategoriesEnvVars(ServiceEnvVars):
    SUBCATEGORIES_TABLE_NAME: Annotated[str, Field(
        default='Dev-Subcategories',
        description='Table holding subcategories'
    )] = 'Dev-Subcategories'

    MARKETPLACE_INDEX_NAME: Annotated[str, Field(
        default='Dev-MarketplaceIndex',
        description='GSI over SK/PK listing categories by marketplace'
    )] = 'Dev-MarketplaceIndex'


class MessagesEnvVars(ServiceEnvVars):
    MESSAGE_FILTERS_TABLE_NAME: Annotated[str, Field(
        default='Dev-MessageFilters',
        description='Table holding contact-info filter definitions'
    )] = 'Dev-MessageFilters'

    REVIEW_QUEUE_URL: Annotated[Optional[str], Field(
        default=None,
        description='Queue receiving pending messages for moderation'
    )] = None


class UsersEnvVars(ServiceEnvVars):
    EMAIL_INDEX_NAME: Annotated[str, Field(
        default='Dev-EmailIndex',
        description='GSI over GSI1PK/GSI1SK resolving users by encrypted email'
    )] = 'Dev-EmailIndex'

    PASSWORD_HASH_ROUNDS: Annotated[int, Field(
        default=10,
        description='bcrypt cost factor for new password hashes',
        ge=4,
        le=31
    )] = 10


class CryptoEnvVars(BaseModel):
    """Secrets for the encryption and decryption functions."""

    AES_SECRET_KEY: Annotated[str, Field(
        description='Secret hashed into the AES key',
        min_length=1
    )]

    AES_SECRET_IV: Annotated[str, Field(
        description='Secret hashed into the AES initialization vector',
        min_length=1
    )]

    AES_ENCRYPTION_METHOD: Annotated[str, Field(
        default='aes-256-cbc',
        description='Cipher name',
        pattern=r'^aes-256-cbc$'
    )] = 'aes-256-cbc'


def get_crypto_env_vars() -> CryptoEnvVars:
    return get_environment_variables(model=CryptoEnvVars)

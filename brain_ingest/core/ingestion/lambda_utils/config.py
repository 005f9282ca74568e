"""
Configuration and secrets management utilities for Lambda.
"""

import json
import logging
import os
from typing import Dict

import boto3

logger = logging.getLogger(__name__)

REQUIRED_ENV_VARS = ("S3_BUCKET", "OPENSEARCH_ENDPOINT")
PLACEHOLDER_API_KEY = "PLACEHOLDER_SET_VIA_CLI"


def validate_environment() -> Dict[str, str]:
    """
    Validate required environment variables.

    Returns:
        Dict with required env vars

    Raises:
        ValueError: Missing required environment variable
    """
    env_config = {}
    missing = []

    for var in REQUIRED_ENV_VARS:
        value = os.getenv(var)
        if not value:
            missing.append(var)
        else:
            env_config[var] = value

    if missing:
        raise ValueError(f"Missing required environment variables: {', '.join(missing)}")

    logger.info("validate_environment - Environment validated")
    return env_config


def configure_secrets(secrets_client=None) -> None:
    """
    Load the OpenAI API key from Secrets Manager into the environment.

    Does nothing when OPENAI_API_KEY is already set or no secret ARN is
    configured. The secret may be JSON ({"api_key": ...}) or the raw key.
    """
    secret_arn = os.getenv("OPENAI_API_KEY_SECRET_ARN")
    if os.getenv("OPENAI_API_KEY") or not secret_arn:
        return

    client = secrets_client or boto3.session.Session().client("secretsmanager")
    try:
        response = client.get_secret_value(SecretId=secret_arn)
    except Exception as e:  # pylint: disable=broad-except
        logger.error("configure_secrets - Failed to fetch OpenAI API key: %s", e)
        return

    secret_string = response.get("SecretString", "")
    try:
        api_key = json.loads(secret_string).get("api_key")
    except (json.JSONDecodeError, AttributeError):
        api_key = secret_string.strip()

    if api_key and api_key != PLACEHOLDER_API_KEY:
        os.environ["OPENAI_API_KEY"] = api_key
        logger.info("configure_secrets - Set OPENAI_API_KEY from secret")
    else:
        logger.warning("configure_secrets - OpenAI API key is missing or placeholder")

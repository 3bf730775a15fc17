"""Credential-based AWS session management.

Customer credentials arrive with an onboarding request and live only in
memory for as long as it takes to build a session from them.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

import boto3

from stratus.errors import InvalidOnboardRequest

logger = logging.getLogger(__name__)

# Long-term keys: AKIA followed by 16 alphanumeric chars
# Temporary (STS) keys: ASIA followed by 16 alphanumeric chars
AWS_ACCESS_KEY_PATTERN = re.compile(r'^A[KS]IA[0-9A-Z]{16}$')
AWS_SECRET_KEY_LENGTH = 40


@dataclass
class AWSCredentials:
    """AWS credentials container (memory-only, never persisted)."""
    access_key: str
    secret_key: str
    session_token: Optional[str] = None
    region: Optional[str] = None

    def __post_init__(self):
        if not self.access_key or not AWS_ACCESS_KEY_PATTERN.match(self.access_key):
            raise InvalidOnboardRequest(
                "Invalid AWS access key format. "
                "Expected AKIA/ASIA followed by 16 alphanumeric characters.",
                field="access_key",
            )
        if not self.secret_key or len(self.secret_key) != AWS_SECRET_KEY_LENGTH:
            raise InvalidOnboardRequest(
                f"Invalid AWS secret key. Expected {AWS_SECRET_KEY_LENGTH} characters.",
                field="secret_key",
            )

    def clear(self):
        """Clear credentials from memory."""
        self.access_key = "X" * len(self.access_key)
        self.secret_key = "X" * len(self.secret_key)
        if self.session_token:
            self.session_token = "X" * len(self.session_token)

    def __repr__(self):
        """Safe repr that doesn't expose credentials."""
        return f"<AWSCredentials access_key={self.access_key[:4]}*** region={self.region}>"


def create_session(credentials: AWSCredentials) -> boto3.Session:
    """Create a boto3 session from credentials.

    Args:
        credentials: AWS credentials object

    Returns:
        Configured boto3 Session
    """
    session_kwargs = {
        "aws_access_key_id": credentials.access_key,
        "aws_secret_access_key": credentials.secret_key,
    }

    if credentials.session_token:
        session_kwargs["aws_session_token"] = credentials.session_token

    if credentials.region:
        session_kwargs["region_name"] = credentials.region

    logger.debug(f"Creating session for {credentials!r}")
    return boto3.Session(**session_kwargs)

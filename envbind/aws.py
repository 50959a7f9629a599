# envbind/aws.py
"""
envbind.aws
-----------

A value pre-processor that resolves AWS secret references.

Values of the form

- ``sm://<name>`` are replaced by the Secrets Manager secret ``<name>``;
  ``sm://<name>#<field>`` selects ``<field>`` from a JSON-object secret.
- ``ssm://<name>`` are replaced by the Parameter Store parameter ``<name>``.

Any other value is returned unchanged. Prefixes only match at the start of
the value.

The clients are injected (anything exposing the boto3 ``get_secret_value`` /
``get_parameter`` methods); ``AWSValuePreProcessor.from_boto3`` creates real
ones and needs the ``aws`` extra.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .exceptions import SecretResolutionError

log = logging.getLogger(__name__)


class AWSValuePreProcessor:
    """Resolves ``sm://`` and ``ssm://`` values through AWS clients."""

    SECRETS_MANAGER_PREFIX = "sm://"
    PARAMETER_STORE_PREFIX = "ssm://"
    SECRET_FIELD_SEPARATOR = "#"

    def __init__(
        self,
        secrets_manager: Any = None,
        parameter_store: Any = None,
        decrypt_parameter_store_values: bool = True,
    ):
        self.secrets_manager = secrets_manager
        self.parameter_store = parameter_store
        self.decrypt_parameter_store_values = decrypt_parameter_store_values

    @classmethod
    def from_boto3(
        cls,
        session: Optional[Any] = None,
        decrypt_parameter_store_values: bool = True,
    ) -> "AWSValuePreProcessor":
        """
        Create a pre-processor backed by boto3 clients.

        Credentials and region come from the standard boto3 resolution chain
        unless a configured ``boto3.session.Session`` is passed.
        """
        import boto3

        session = session or boto3.session.Session()
        return cls(
            secrets_manager=session.client("secretsmanager"),
            parameter_store=session.client("ssm"),
            decrypt_parameter_store_values=decrypt_parameter_store_values,
        )

    def pre_process_value(self, key: str, value: str) -> str:
        if value.startswith(self.SECRETS_MANAGER_PREFIX):
            log.debug("Resolving '%s' from Secrets Manager.", key)
            return self._load_from_secrets_manager(value[len(self.SECRETS_MANAGER_PREFIX):])
        if value.startswith(self.PARAMETER_STORE_PREFIX):
            log.debug("Resolving '%s' from Parameter Store.", key)
            return self._load_from_parameter_store(value[len(self.PARAMETER_STORE_PREFIX):])
        return value

    def _load_from_secrets_manager(self, reference: str) -> str:
        name, sep, secret_field = reference.partition(self.SECRET_FIELD_SEPARATOR)
        if self.secrets_manager is None:
            raise SecretResolutionError(reference, "no Secrets Manager client configured")
        try:
            resp = self.secrets_manager.get_secret_value(SecretId=name)
        except Exception as e:
            raise SecretResolutionError(reference, f"error loading secret: {e}") from e

        payload = resp.get("SecretString")
        if payload is None:
            binary = resp.get("SecretBinary")
            if binary is None:
                raise SecretResolutionError(reference, "secret has no value")
            if not isinstance(binary, (bytes, bytearray)):
                payload = str(binary)
            else:
                try:
                    payload = binary.decode("utf-8")
                except UnicodeDecodeError as e:
                    raise SecretResolutionError(reference, f"binary secret is not UTF-8: {e}") from e

        if not sep:
            return payload
        return self._select_field(reference, payload, secret_field)

    def _select_field(self, reference: str, payload: str, secret_field: str) -> str:
        try:
            document = json.loads(payload)
        except json.JSONDecodeError as e:
            raise SecretResolutionError(reference, f"secret is not valid JSON: {e}") from e
        if not isinstance(document, dict):
            raise SecretResolutionError(reference, "secret is not a JSON object")
        if secret_field not in document:
            raise SecretResolutionError(reference, f"secret has no field '{secret_field}'")
        value = document[secret_field]
        return value if isinstance(value, str) else json.dumps(value)

    def _load_from_parameter_store(self, name: str) -> str:
        if self.parameter_store is None:
            raise SecretResolutionError(name, "no Parameter Store client configured")
        try:
            resp = self.parameter_store.get_parameter(
                Name=name, WithDecryption=self.decrypt_parameter_store_values
            )
        except Exception as e:
            raise SecretResolutionError(name, f"error loading parameter: {e}") from e
        try:
            return resp["Parameter"]["Value"]
        except KeyError:
            raise SecretResolutionError(name, "parameter has no value") from None

"""Joyent provider: create and inspect machines via the CloudAPI REST API."""

import json
import logging

import httpx

from joyctl.provisioning.types import (
    Created,
    CreateOutcome,
    Flavor,
    ProviderRejected,
    ProvisionedResource,
    ProvisionRequest,
    TransportFailed,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://us-east-1.api.joyentcloud.com"
API_VERSION = "~7.0"
DEFAULT_REQUEST_TIMEOUT = 60


def decode_error_body(response: httpx.Response):
    """Extract (message, code) from a CloudAPI error response.

    Returns (None, "") when the body is not a JSON object with a message.
    """
    try:
        body = response.json()
    except ValueError:
        return None, ""
    if not isinstance(body, dict) or not body.get("message"):
        return None, ""
    return str(body["message"]), str(body.get("code", ""))


class JoyentClient:
    """Thin async CloudAPI client. One HTTP connection per request."""

    def __init__(
        self,
        url=DEFAULT_API_URL,
        username=None,
        password=None,
        api_version=API_VERSION,
        timeout=DEFAULT_REQUEST_TIMEOUT,
        dry_run=False,
        transport=None,
    ):
        self.url = url.rstrip("/")
        self.username = username
        self.password = password
        self.api_version = api_version
        self.timeout = timeout
        self.dry_run = dry_run
        self._transport = transport

    @classmethod
    def from_config(cls, config, dry_run=False, transport=None):
        return cls(
            url=config.url,
            username=config.username,
            password=config.password,
            api_version=config.api_version,
            dry_run=dry_run,
            transport=transport,
        )

    def _client(self):
        auth = (self.username, self.password or "") if self.username else None
        headers = {"Accept": "application/json", "X-Api-Version": self.api_version}
        return httpx.AsyncClient(
            base_url=self.url,
            auth=auth,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _api_request(self, method, path, data=None):
        """Make an authenticated CloudAPI request.

        Returns:
            Parsed JSON body, or ``None`` in dry-run mode and for empty bodies.
        """
        if self.dry_run:
            logger.info(f"[dry-run] {method} {self.url}{path}")
            if data is not None:
                logger.info(f"[dry-run] payload: {json.dumps(data, indent=2)}")
            return None

        async with self._client() as client:
            resp = await client.request(method, path, json=data)
        resp.raise_for_status()
        if not resp.content:
            return None
        return resp.json()

    # ── Packages ───────────────────────────────────────────────────

    async def list_flavors(self) -> list[Flavor]:
        """GET /my/packages"""
        packages = await self._api_request("GET", "/my/packages")
        return [Flavor.from_api(p) for p in packages or []]

    # ── Machines ───────────────────────────────────────────────────

    async def create_machine(self, request: ProvisionRequest) -> CreateOutcome:
        """POST /my/machines

        Never raises for HTTP failures: a decodable error body becomes
        ProviderRejected, anything else TransportFailed carrying the
        original exception.
        """
        data = {"image": request.image, "package": request.flavor}
        if request.name:
            data["name"] = request.name

        try:
            machine = await self._api_request("POST", "/my/machines", data)
        except httpx.HTTPStatusError as e:
            logger.debug(f"Create failed: HTTP {e.response.status_code} {e.response.text}")
            message, code = decode_error_body(e.response)
            if message is None:
                return TransportFailed(e)
            return ProviderRejected(message=message, code=code)
        except httpx.HTTPError as e:
            logger.debug(f"Create failed: {e!r}")
            return TransportFailed(e)

        if machine is None:
            machine = {
                "id": "dry-run-id",
                "name": request.name or "",
                "state": "provisioning",
                "image": request.image,
                "ips": [],
            }
        return Created(ProvisionedResource.from_api(machine))

    async def get_machine(self, machine_id) -> ProvisionedResource:
        """GET /my/machines/:id"""
        machine = await self._api_request("GET", f"/my/machines/{machine_id}")
        if machine is None:
            machine = {"id": machine_id, "state": "running"}
        return ProvisionedResource.from_api(machine)

    async def delete_machine(self, machine_id):
        """DELETE /my/machines/:id"""
        logger.info(f"Deleting machine '{machine_id}'...")
        await self._api_request("DELETE", f"/my/machines/{machine_id}")

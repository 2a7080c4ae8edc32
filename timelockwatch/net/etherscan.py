"""
timelockwatch/net/etherscan.py
Ledger history source backed by the Etherscan account API.

Fetches the normal transactions of the executor account in one request and
turns them into RawRecords. This is the only place the package performs
network I/O; timeouts and transport failures are handled here.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

import httpx
from eth_utils import decode_hex
from pydantic import BaseModel, ConfigDict, Field

from timelockwatch.base.config import EtherscanConfig
from timelockwatch.errors import ErrorCode, RecordFetchError
from timelockwatch.lifecycle.models import RawRecord

logger = logging.getLogger(__name__)

NO_TRANSACTIONS = "No transactions found"


class EtherscanTransaction(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    hash: str
    from_address: str = Field(alias="from")
    to: str = ""
    block_number: int = Field(alias="blockNumber")
    timestamp: int = Field(alias="timeStamp")
    input: str = "0x"
    is_error: str = Field(default="0", alias="isError")

    @property
    def reverted(self) -> bool:
        return self.is_error == "1"

    def to_record(self) -> RawRecord:
        payload, error = b"", None
        try:
            payload = decode_hex(self.input) if self.input else b""
        except ValueError as e:
            error = f"input is not valid hex ({e})"
        return RawRecord(
            hash=self.hash,
            from_address=self.from_address,
            block_number=self.block_number,
            timestamp=self.timestamp,
            payload=payload,
            payload_error=error,
        )


class EtherscanResponse(BaseModel):
    status: str
    message: str
    result: Union[List[EtherscanTransaction], str]


class EtherscanHistorySource:
    """
    One-shot fetch of an account's transaction history, newest first.

    Pass ``client`` to share an httpx.AsyncClient (or a mock transport in
    tests); otherwise a client is opened and closed per fetch.
    """

    def __init__(self, config: EtherscanConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.client = client

    def _params(self, address: str) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": 0,
            "endblock": 99999999,
            "page": 1,
            "offset": self.config.max_records,
            "sort": "desc",
        }
        if self.config.api_key:
            params["apikey"] = self.config.api_key
        return params

    async def fetch(self, address: str) -> List[RawRecord]:
        """
        Fetch up to ``max_records`` transactions sent to ``address``.

        Raises:
            RecordFetchError: transport failure, API error or unparseable body
        """
        if self.client is not None:
            response = await self._get(self.client, address)
        else:
            async with httpx.AsyncClient(timeout=self.config.request_timeout) as client:
                response = await self._get(client, address)

        try:
            body = EtherscanResponse.model_validate(response.json())
        except ValueError as e:
            raise RecordFetchError(
                f"Unexpected Etherscan response for {address}: {e}",
                code=ErrorCode.FETCH_INVALID_RESPONSE,
                details={"address": address},
            ) from e

        if body.status != "1":
            if body.message.startswith(NO_TRANSACTIONS):
                logger.info(f"[Etherscan] No transactions for {address}")
                return []
            raise RecordFetchError(
                f"Etherscan error for {address}: {body.message} ({body.result})",
                details={"address": address, "message": body.message},
            )
        if isinstance(body.result, str):
            raise RecordFetchError(
                f"Etherscan returned no transaction list for {address}: {body.result}",
                code=ErrorCode.FETCH_INVALID_RESPONSE,
                details={"address": address},
            )

        records: List[RawRecord] = []
        skipped = 0
        malformed = 0
        for tx in body.result:
            if not tx.to:
                # Contract creation
                skipped += 1
                continue
            if self.config.skip_reverted and tx.reverted:
                skipped += 1
                continue
            record = tx.to_record()
            if record.payload_error:
                malformed += 1
                logger.warning(f"[Etherscan] Transaction {tx.hash} has malformed input data: {record.payload_error}")
            records.append(record)

        logger.info(
            f"[Etherscan] Fetched {len(records)} record(s) for {address} "
            f"({skipped} skipped, {malformed} malformed)"
        )
        return records

    async def _get(self, client: httpx.AsyncClient, address: str) -> httpx.Response:
        try:
            response = await client.get(
                self.config.api_url,
                params=self._params(address),
                timeout=self.config.request_timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"[Etherscan] Request for {address} failed: {e}")
            raise RecordFetchError(
                f"Could not fetch history for {address}: {e}",
                code=ErrorCode.FETCH_TRANSPORT_FAILED,
                details={"address": address},
            ) from e
        return response

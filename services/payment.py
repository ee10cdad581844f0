import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from decimal import Decimal

import aiohttp
from pydantic import ValidationError

import config
from enums.payment_method import PaymentMethod
from exceptions.payment import PaymentDeclinedException
from exceptions.service import NetworkFailureException
from models.payment import PaymentRequestDTO, PaymentAuthorizationDTO
from utils.money import to_money

logger = logging.getLogger(__name__)


class PaymentService(ABC):
    """
    Payment submission collaborator.

    submit() returns the authorization on success and raises
    PaymentDeclinedException or NetworkFailureException otherwise. A submission
    that has been sent cannot be recalled.
    """

    @abstractmethod
    async def submit(self, session_id: str, amount: Decimal, method: PaymentMethod,
                     reference: str | None = None) -> PaymentAuthorizationDTO:
        ...


class CashDrawerPaymentService(PaymentService):
    """
    In-process payment recording for a stand-alone till.

    Cash goes straight into the drawer. Card and bank transfer payments are
    confirmed on an external terminal and arrive here with the terminal
    reference the operator typed in, so every submission is authorized for
    exactly the submitted amount.
    """

    async def submit(self, session_id: str, amount: Decimal, method: PaymentMethod,
                     reference: str | None = None) -> PaymentAuthorizationDTO:
        transaction_reference = reference or f"POS-{uuid.uuid4().hex[:12].upper()}"
        logger.info(f"Recorded {method.value} payment of {amount} for session {session_id} "
                    f"(ref {transaction_reference})")
        return PaymentAuthorizationDTO(
            authorized_amount=to_money(amount),
            transaction_reference=transaction_reference
        )


class HttpPaymentService(PaymentService):
    """
    Payment submission against the payment gateway REST API.

    POST {base_url}/payments  (Authorization: Bearer <PAYMENT_API_KEY>)
        200/201 -> {"status": "authorized", "authorized_amount": "10.00", "transaction_reference": "..."}
        200     -> {"status": "declined", "reason": "..."}
        402     -> {"reason": "..."}
    """

    def __init__(self, base_url: str | None = None, api_key: str | None = None,
                 timeout_seconds: float | None = None, http_session: aiohttp.ClientSession | None = None):
        self.base_url = (base_url or config.PAYMENT_API_URL).rstrip('/')
        self.api_key = api_key if api_key is not None else config.PAYMENT_API_KEY
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds or config.PAYMENT_TIMEOUT_SECONDS)
        self._http_session = http_session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._http_session is None or self._http_session.closed:
            self._http_session = aiohttp.ClientSession(timeout=self.timeout)
        return self._http_session

    async def close(self) -> None:
        if self._http_session is not None and not self._http_session.closed:
            await self._http_session.close()

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def submit(self, session_id: str, amount: Decimal, method: PaymentMethod,
                     reference: str | None = None) -> PaymentAuthorizationDTO:
        request_dto = PaymentRequestDTO(
            session_id=session_id,
            amount=to_money(amount),
            method=method,
            reference=reference
        )
        session = await self._get_session()
        logger.info(f"Submitting {method.value} payment of {request_dto.amount} for session {session_id}")

        try:
            async with session.post(f"{self.base_url}/payments",
                                    data=request_dto.model_dump_json(exclude_none=True),
                                    headers=self._headers()) as response:
                status = response.status
                if status == 402:
                    payload = await _read_json(response)
                    raise PaymentDeclinedException(session_id, request_dto.amount, _reason(payload))
                if status not in (200, 201):
                    raise NetworkFailureException("Payment service", f"HTTP {status}")
                payload = await _read_json(response)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Payment request failed for session {session_id}: {e!r}")
            raise NetworkFailureException("Payment service", repr(e))

        if isinstance(payload, dict) and payload.get("status") == "declined":
            raise PaymentDeclinedException(session_id, request_dto.amount, _reason(payload))

        try:
            return PaymentAuthorizationDTO.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Malformed payment response for session {session_id}: {payload!r}")
            raise NetworkFailureException("Payment service", f"malformed response: {e}")


async def _read_json(response: aiohttp.ClientResponse):
    try:
        return await response.json(content_type=None)
    except ValueError:
        return None


def _reason(payload) -> str | None:
    if isinstance(payload, dict):
        return payload.get("reason")
    return None


def create_payment_service() -> PaymentService:
    """Build the payment backend selected by config.PAYMENT_BACKEND."""
    if config.PAYMENT_BACKEND == "http":
        return HttpPaymentService()
    return CashDrawerPaymentService()

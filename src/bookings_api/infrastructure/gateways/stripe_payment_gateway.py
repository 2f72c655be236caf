import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from bookings_api.domain.ports import PaymentIntent, PaymentIntentRequest, PaymentResult
from bookings_api.infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    RetryPolicy,
)

logger = logging.getLogger(__name__)

INTENTS_PATH = "/v1/payment_intents"


class StripeAPIError(Exception):
    """Error response returned by the Stripe REST API."""

    def __init__(self, status_code: int, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


class StripeRequestError(StripeAPIError):
    """4xx response; the upstream is healthy but refused the request."""

    pass


class StripeServerError(StripeAPIError):
    """5xx or rate-limit response; the request may be repeated."""

    pass


class StripePaymentGateway:
    """Payment intents over Stripe's form-encoded REST API.

    Creation, capture and cancellation go through the circuit breaker only.
    Retrieval is idempotent and is additionally retried on transport and
    server errors.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        circuit_breaker: CircuitBreaker,
        retry_policy: RetryPolicy,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._client = client
        self._circuit_breaker = circuit_breaker
        self._retry_policy = retry_policy
        self._timeout_seconds = timeout_seconds

    async def create_intent(self, request: PaymentIntentRequest) -> PaymentResult:
        async def _request() -> dict[str, Any]:
            return await self._send(
                "POST",
                INTENTS_PATH,
                data=self._build_intent_form(request),
                idempotency_key=request.idempotency_key,
            )

        return await self._run(_request, retry=False)

    async def retrieve_intent(self, intent_id: str) -> PaymentResult:
        async def _request() -> dict[str, Any]:
            return await self._send("GET", f"{INTENTS_PATH}/{intent_id}")

        return await self._run(_request, retry=True)

    async def capture_intent(self, intent_id: str) -> PaymentResult:
        async def _request() -> dict[str, Any]:
            return await self._send("POST", f"{INTENTS_PATH}/{intent_id}/capture")

        return await self._run(_request, retry=False)

    async def cancel_intent(self, intent_id: str) -> PaymentResult:
        """Release an uncaptured intent so its hold is dropped from the card."""

        async def _request() -> dict[str, Any]:
            return await self._send("POST", f"{INTENTS_PATH}/{intent_id}/cancel")

        return await self._run(_request, retry=False)

    async def _run(
        self,
        request: Callable[[], Awaitable[dict[str, Any]]],
        *,
        retry: bool,
    ) -> PaymentResult:
        async def _request_with_circuit_breaker() -> dict[str, Any]:
            return await self._circuit_breaker.call(request)

        try:
            if retry:
                payload = await self._retry_policy.execute(_request_with_circuit_breaker)
            else:
                payload = await _request_with_circuit_breaker()
        except CircuitBreakerOpenError:
            return PaymentResult(success=False, status="CIRCUIT_OPEN")
        except httpx.TimeoutException:
            logger.warning("stripe_request_timeout")
            return PaymentResult(success=False, status="TIMEOUT")
        except StripeServerError as exc:
            logger.warning("stripe_server_error status_code=%s", exc.status_code)
            return PaymentResult(success=False, status="UNAVAILABLE", error_message=exc.message)
        except StripeRequestError as exc:
            if exc.status_code == 404:
                return PaymentResult(success=False, status="NOT_FOUND", error_message=exc.message)
            logger.warning(
                "stripe_request_failed status_code=%s code=%s", exc.status_code, exc.code
            )
            return PaymentResult(success=False, status="FAILED", error_message=exc.message)
        except httpx.HTTPError as exc:
            logger.warning("stripe_transport_error error=%s", type(exc).__name__)
            return PaymentResult(success=False, status="UNAVAILABLE", error_message=str(exc))

        intent = self._to_intent(payload)
        return PaymentResult(success=True, status=intent.status, intent=intent)

    async def _send(
        self,
        method: str,
        path: str,
        *,
        data: dict[str, str] | None = None,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        response = await self._client.request(
            method,
            path,
            data=data,
            headers=headers,
            timeout=self._timeout_seconds,
        )
        if response.status_code >= 400:
            raise self._to_api_error(response)
        return response.json()

    @staticmethod
    def _to_api_error(response: httpx.Response) -> StripeAPIError:
        message = f"Stripe request failed with status {response.status_code}"
        code = None
        try:
            error = response.json().get("error") or {}
        except ValueError:
            error = {}
        if isinstance(error, dict):
            message = str(error.get("message") or message)
            code = error.get("code")
        if response.status_code >= 500 or response.status_code == 429:
            return StripeServerError(response.status_code, message, code)
        return StripeRequestError(response.status_code, message, code)

    @staticmethod
    def _build_intent_form(request: PaymentIntentRequest) -> dict[str, str]:
        form = {
            "amount": str(request.amount),
            "currency": request.currency,
            "capture_method": request.capture_method,
            "automatic_payment_methods[enabled]": "true",
        }
        for key, value in request.metadata.items():
            form[f"metadata[{key}]"] = value
        if request.transfer_destination:
            form["transfer_data[destination]"] = request.transfer_destination
            if request.application_fee_amount is not None:
                form["application_fee_amount"] = str(request.application_fee_amount)
        return form

    @staticmethod
    def _to_intent(payload: dict[str, Any]) -> PaymentIntent:
        transfer_data = payload.get("transfer_data") or {}
        return PaymentIntent(
            id=str(payload["id"]),
            status=str(payload.get("status", "")),
            amount=int(payload.get("amount") or 0),
            client_secret=payload.get("client_secret"),
            application_fee_amount=payload.get("application_fee_amount"),
            transfer_destination=transfer_data.get("destination"),
            metadata={str(k): str(v) for k, v in (payload.get("metadata") or {}).items()},
            capture_method=payload.get("capture_method"),
        )

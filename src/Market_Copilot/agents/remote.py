"""Remote analysis backend: a PydanticAI model behind the AnalysisBackend interface.

Every way a remote call can go wrong is mapped onto one of three errors:

* ``BackendUnavailableError``: missing API key, network error, timeout, HTTP error.
* ``MalformedResponseError``: output that fails JSON parsing or schema validation.
* ``BackendReportedError``: a well-formed payload carrying an ``error`` field.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

import httpx
import pydantic
from pydantic_ai.exceptions import ModelHTTPError, UnexpectedModelBehavior
from pydantic_ai.models import Model

from Market_Copilot.agents.analyst import AnalystDeps, run_analyst
from Market_Copilot.agents.base import AnalysisBackend
from Market_Copilot.agents.context_builder import build_context_text
from Market_Copilot.agents.model_config import check_backend_reachable
from Market_Copilot.models import (
    AnalysisContext,
    AnalysisResult,
    BackendId,
    RemoteAnalysisPayload,
)
from Market_Copilot.utils.exceptions import (
    BackendReportedError,
    BackendUnavailableError,
    MalformedResponseError,
)

logger = logging.getLogger(__name__)

DEFAULT_HORIZON: str = "not specified"


class RemoteAnalysisBackend(AnalysisBackend):
    """Analysis via a hosted LLM.

    The model is built lazily on first use so that constructing the backend
    never fails, even without credentials.

    Parameters
    ----------
    backend_id:
        Identifier reported in results (``claude`` or ``deepseek``).
    api_key:
        Credential for the hosted API, or ``None`` when not configured.
    model_name:
        Name of the hosted model.
    system_prompt:
        Versioned system prompt for this backend.
    model_builder:
        ``(api_key, model_name) -> Model`` factory.
    reachability_url / reachability_headers:
        Endpoint and auth headers checked by ``test_connection``.
    """

    is_remote = True

    def __init__(
        self,
        backend_id: BackendId,
        *,
        api_key: str | None,
        model_name: str,
        system_prompt: str,
        model_builder: Callable[[str, str], Model],
        reachability_url: str,
        reachability_headers: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.backend_id = backend_id
        self._api_key = api_key
        self._model_name = model_name
        self._system_prompt = system_prompt
        self._model_builder = model_builder
        self._reachability_url = reachability_url
        self._reachability_headers = dict(reachability_headers or {})
        self._transport = transport
        self._model: Model | None = None
        self._input_tokens = 0
        self._output_tokens = 0

        logger.info(
            "RemoteAnalysisBackend initialized: id=%s, model=%s, api_key=%s",
            backend_id,
            model_name,
            "configured" if api_key else "not configured",
        )

    @property
    def configured(self) -> bool:
        """True if an API key is available."""
        return bool(self._api_key)

    async def analyze(self, context: AnalysisContext) -> AnalysisResult:
        if not self._api_key:
            msg = f"{self.backend_id} API key is not configured"
            raise BackendUnavailableError(msg, backend=self.backend_id)

        deps = AnalystDeps(
            system_prompt=self._system_prompt,
            context_text=build_context_text(context),
            query=context.query,
        )
        model = self._get_model()
        start = time.monotonic()
        try:
            payload, usage = await run_analyst(deps, model)
        except UnexpectedModelBehavior as exc:
            msg = f"{self.backend_id} returned output that does not match the schema: {exc}"
            raise MalformedResponseError(msg, backend=self.backend_id) from exc
        except pydantic.ValidationError as exc:
            msg = f"{self.backend_id} returned invalid fields: {exc}"
            raise MalformedResponseError(msg, backend=self.backend_id) from exc
        except ModelHTTPError as exc:
            msg = f"{self.backend_id} returned HTTP {exc.status_code}"
            raise BackendUnavailableError(msg, backend=self.backend_id) from exc
        except (TimeoutError, httpx.HTTPError, ConnectionError) as exc:
            msg = f"{self.backend_id} is unreachable: {exc}"
            raise BackendUnavailableError(msg, backend=self.backend_id) from exc
        except Exception as exc:  # noqa: BLE001
            # Provider SDKs wrap transport failures in their own exception types
            msg = f"{self.backend_id} request failed: {exc}"
            raise BackendUnavailableError(msg, backend=self.backend_id) from exc

        self._input_tokens += usage.input_tokens
        self._output_tokens += usage.output_tokens
        logger.info(
            "%s analysis completed for %s in %dms",
            self.backend_id,
            context.instrument,
            int((time.monotonic() - start) * 1000),
        )
        return self._to_result(payload)

    async def test_connection(self) -> bool:
        if not self._api_key:
            return False
        return await check_backend_reachable(
            self._reachability_url,
            headers=self._reachability_headers,
            transport=self._transport,
        )

    def describe(self) -> dict[str, Any]:
        return {
            **super().describe(),
            "model": self._model_name,
            "configured": self.configured,
            "input_tokens": self._input_tokens,
            "output_tokens": self._output_tokens,
        }

    def token_usage(self) -> tuple[int, int]:
        return self._input_tokens, self._output_tokens

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_model(self) -> Model:
        if self._model is None:
            if not self._api_key:
                msg = f"{self.backend_id} API key is not configured"
                raise BackendUnavailableError(msg, backend=self.backend_id)
            self._model = self._model_builder(self._api_key, self._model_name)
        return self._model

    def _to_result(self, payload: RemoteAnalysisPayload) -> AnalysisResult:
        """Convert a validated payload into an ``AnalysisResult``."""
        if payload.error is not None:
            msg = f"{self.backend_id} declined the request: {payload.error}"
            raise BackendReportedError(msg, backend=self.backend_id)
        if payload.key_levels is None or payload.risk_management is None:
            msg = f"{self.backend_id} omitted key levels or risk management"
            raise MalformedResponseError(msg, backend=self.backend_id)

        try:
            return AnalysisResult(
                narrative_text=payload.analysis,
                recommendation=payload.recommendation,
                confidence=payload.confidence,
                support_level=payload.key_levels.support,
                resistance_level=payload.key_levels.resistance,
                entry_level=payload.key_levels.entry,
                stop_loss=payload.risk_management.stop_loss,
                take_profit=payload.risk_management.take_profit,
                risk_reward_ratio=payload.risk_management.risk_reward,
                technical_summary=payload.technical_view,
                catalysts=list(payload.catalysts),
                recommended_horizon=payload.timeframe or DEFAULT_HORIZON,
                source_backend_id=self.backend_id,
            )
        except pydantic.ValidationError as exc:
            msg = f"{self.backend_id} payload could not be normalized: {exc}"
            raise MalformedResponseError(msg, backend=self.backend_id) from exc

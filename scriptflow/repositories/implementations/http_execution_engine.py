import httpx
from typing import Dict
import structlog
from scriptflow.repositories.interfaces.execution_engine import IExecutionEngine
from scriptflow.core.errors import ExecutionEngineError
from scriptflow.models.schemas import Script, TestRun
from scriptflow.config.settings import settings

logger = structlog.get_logger()


class HttpExecutionEngine(IExecutionEngine):
    """Remote runner reached over HTTP; it reports back through the progress callback"""

    def __init__(
        self,
        base_url: str,
        api_token: str = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout
        self.transport = transport

    def _get_headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def _callback_url(self, run_id: int) -> str:
        return f"{settings.public_base_url.rstrip('/')}{settings.api_prefix}/test-runs/{run_id}/progress"

    async def submit(self, run: TestRun, script: Script) -> None:
        payload = {
            "run_id": run.id,
            "script_id": script.id,
            "environment": run.environment,
            "browser": run.browser.value,
            "language": script.language,
            "script": script.content,
            "callback_url": self._callback_url(run.id),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(f"{self.base_url}/runs", json=payload, headers=self._get_headers())
        except httpx.HTTPError as e:
            logger.error("Execution engine unreachable", run_id=run.id, error=str(e))
            raise ExecutionEngineError(
                "Execution engine unreachable",
                details={"run_id": run.id, "error": str(e)},
            )

        if response.status_code >= 400:
            logger.error(
                "Execution engine rejected run",
                run_id=run.id,
                status_code=response.status_code,
                response=response.text[:500],
            )
            raise ExecutionEngineError(
                "Execution engine rejected the run",
                details={"run_id": run.id, "status_code": response.status_code, "response": response.text[:500]},
            )
        logger.info("Run handed to execution engine", run_id=run.id, status_code=response.status_code)

    async def cancel(self, run_id: int) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(f"{self.base_url}/runs/{run_id}/cancel", headers=self._get_headers())
            if response.status_code >= 400:
                logger.warning("Execution engine refused cancellation", run_id=run_id, status_code=response.status_code)
        except httpx.HTTPError as e:
            # cancellation is advisory; the run is already recorded as cancelled
            logger.warning("Failed to forward cancellation", run_id=run_id, error=str(e))

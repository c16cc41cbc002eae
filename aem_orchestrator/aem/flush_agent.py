"""Flush agent registration through the AEM replication agent endpoint."""

from typing import Dict, List, Optional, Tuple, Union

import requests

from ..core.enums import AgentRunMode
from ..core.errors import RemoteServiceError
from ..core.log import Logger
from ..core.types import AemConfig

FLUSH_AGENT_PREFIX = "flushagent-"
INVALIDATE_CACHE_PATH = "/dispatcher/invalidate.cache"


def flush_agent_name(instance_id: str) -> str:
    """Name of the flush agent owned by a dispatcher instance."""
    return f"{FLUSH_AGENT_PREFIX}{instance_id}"


def flush_agent_form(
    instance_id: str, target_base_url: str
) -> List[Tuple[str, str]]:
    """Sling POST parameters describing a dispatcher flush agent."""
    name = flush_agent_name(instance_id)
    form: List[Tuple[str, str]] = [
        ("jcr:primaryType", "cq:Page"),
        ("jcr:content/jcr:primaryType", "nt:unstructured"),
        ("jcr:content/sling:resourceType", "/libs/cq/replication/components/agent"),
        ("jcr:content/cq:template", "/libs/cq/replication/templates/agent"),
        ("jcr:content/cq:name", name),
        ("jcr:content/jcr:title", name),
        ("jcr:content/jcr:description", f"Flush Agent for dispatcher id: {instance_id}"),
        ("jcr:content/enabled", "true"),
        ("jcr:content/serializationType", "flush"),
        ("jcr:content/transportUri", f"{target_base_url}{INVALIDATE_CACHE_PATH}"),
        ("jcr:content/protocolHTTPMethod", "GET"),
        ("jcr:content/retryDelay", "60000"),
        ("jcr:content/logLevel", "error"),
        ("jcr:content/noVersioning", "true"),
        ("jcr:content/triggerSpecific", "true"),
        ("jcr:content/triggerReceive", "true"),
    ]
    for header in ("CQ-Action:{action}", "CQ-Handle:{path}", "CQ-Path:{path}"):
        form.append(("jcr:content/protocolHTTPHeaders", header))
    form.append(("jcr:content/protocolHTTPHeaders@TypeHint", "String[]"))
    return form


class FlushAgentManager:
    """Creates flush agents on AEM instances.

    Posting to an existing agent path overwrites its properties, so creating
    the same agent twice leaves a single, up to date agent.
    """

    def __init__(
        self,
        aem_config: AemConfig,
        logger: Logger,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = aem_config
        self._logger = logger
        self._session = session or requests.Session()

    def create_flush_agent(
        self,
        instance_id: str,
        source_base_url: str,
        target_base_url: str,
        run_mode: AgentRunMode,
    ) -> None:
        """Create a flush agent on ``source_base_url`` that flushes ``target_base_url``.

        Raises:
            RemoteServiceError: If the request fails or AEM rejects it
        """
        url = (
            f"{source_base_url.rstrip('/')}/etc/replication/agents.{run_mode.value}/"
            f"{flush_agent_name(instance_id)}"
        )
        details: Dict[str, Union[str, int]] = {
            "instance_id": instance_id,
            "run_mode": run_mode.value,
            "url": url,
        }
        self._logger.debug("Posting flush agent definition to %s", url)

        try:
            response = self._session.post(
                url,
                data=flush_agent_form(instance_id, target_base_url.rstrip("/")),
                auth=(
                    self._config.username,
                    self._config.password.get_secret_value(),
                ),
                timeout=self._config.request_timeout,
                verify=self._config.verify_tls,
            )
        except requests.RequestException as e:
            raise RemoteServiceError(
                f"Flush agent request to {url} failed: {e}",
                service="aem",
                operation="create_flush_agent",
                details=details,
            ) from e

        if not response.ok:
            details["status_code"] = response.status_code
            raise RemoteServiceError(
                f"AEM rejected flush agent for {instance_id}: "
                f"HTTP {response.status_code} {response.reason}",
                service="aem",
                operation="create_flush_agent",
                error_code=str(response.status_code),
                details=details,
            )

        self._logger.info(
            "Created %s flush agent %s on %s",
            run_mode.value,
            flush_agent_name(instance_id),
            source_base_url,
        )

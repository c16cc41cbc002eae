"""Resolution of AEM base URLs from AWS network identity."""

from typing import Optional

from ..aws.gateway import CloudResourceGateway
from ..core.errors import ConfigurationError
from ..core.log import Logger
from ..core.types import AemConfig


class AemInstanceHelper:
    """Maps instances to the AEM base URLs they are addressed at.

    Dispatchers are addressed directly by private IP; author instances are
    addressed through the load balancer fronting them.
    """

    def __init__(
        self, gateway: CloudResourceGateway, aem_config: AemConfig, logger: Logger
    ) -> None:
        self._gateway = gateway
        self._config = aem_config
        self._logger = logger

    def get_aem_url_for_author_dispatcher(self, instance_id: str) -> Optional[str]:
        """Base URL of an author dispatcher, or None if its IP never resolved."""
        private_ip = self._gateway.resolve_private_address(instance_id)
        if private_ip is None:
            return None
        return self._base_url(private_ip, self._config.author_dispatcher_port)

    def get_aem_url_for_author_elb(self, author_host: Optional[str] = None) -> str:
        """Base URL of the author load balancer.

        Pass an already resolved ``author_host`` to skip the ELB lookup.
        """
        if author_host is None:
            author_host = self.get_author_host()
        return self._base_url(author_host, self._config.author_elb_port)

    def get_author_host(self) -> str:
        """DNS name of the author load balancer."""
        if not self._config.author_elb_name:
            raise ConfigurationError("aem.author_elb_name is not configured")
        host = self._gateway.resolve_load_balancer_address(self._config.author_elb_name)
        self._logger.debug(
            "Author load balancer %s resolved to %s", self._config.author_elb_name, host
        )
        return host

    def _base_url(self, host: str, port: int) -> str:
        return f"{self._config.protocol}://{host}:{port}"

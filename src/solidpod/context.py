from argparse import Namespace
from dataclasses import dataclass
from importlib.metadata import version
from typing import Any, Dict

from solidpod.client import Pod, PodClient


@dataclass
class PodContext:
    config: Dict[str, Any] = None
    args: Namespace = None
    _pod: Pod = None
    _client: PodClient = None

    @property
    def version(self):
        return version('solidpod')

    @property
    def pod_config(self) -> Dict[str, Any]:
        return self.config.get('POD', {})

    @property
    def pod(self) -> Pod:
        if self._pod is None:
            try:
                self._pod = Pod(url=self.pod_config['URL'])
            except KeyError as e:
                raise RuntimeError(f"Missing configuration key {e} in section 'POD'")
            except ValueError as e:
                raise RuntimeError(f"Invalid configuration in section 'POD': {e}") from e

        return self._pod

    @property
    def client(self) -> PodClient:
        if self._client is None:
            timeout = self.pod_config.get('TIMEOUT')
            self._client = PodClient(
                pod=self.pod,
                ua_string=f'solidpod/{self.version}',
                timeout=float(timeout) if timeout is not None else None,
            )

        return self._client
